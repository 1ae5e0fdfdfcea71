from .plans import PLACEHOLDER_LINK, Plan, get_all_plans, get_plan, usable_stripe_link

__all__ = ["PLACEHOLDER_LINK", "Plan", "get_all_plans", "get_plan", "usable_stripe_link"]
