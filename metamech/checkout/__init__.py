from .forms import LeadForm, SubmissionGuard
from .router import Action, ComposeEmail, OpenExternalLink, PaymentRouter, ReportError
from .wizard import CheckoutWizard

__all__ = [
    "Action",
    "CheckoutWizard",
    "ComposeEmail",
    "LeadForm",
    "OpenExternalLink",
    "PaymentRouter",
    "ReportError",
    "SubmissionGuard",
]
