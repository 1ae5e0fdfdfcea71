from enum import Enum


class PaymentMethod(str, Enum):
    CARD_REDIRECT = "card_redirect"
    WALLET_REDIRECT = "wallet_redirect"
    INVOICE_REQUEST = "invoice_request"


class WizardStep(str, Enum):
    DETAILS = "details"
    PAYMENT = "payment"


class FormFlow(str, Enum):
    ORDER_DETAILS = "order_details"
    TRIAL_REQUEST = "trial_request"
    CONTACT_REQUEST = "contact_request"


class ActionType(str, Enum):
    OPEN_EXTERNAL_LINK = "open_external_link"
    COMPOSE_EMAIL = "compose_email"
    REPORT_ERROR = "report_error"
