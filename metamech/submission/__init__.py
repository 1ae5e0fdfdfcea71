from .base import SubmissionClientBase, SubmissionResult, build_payload
from .web3forms_client import Web3FormsClient

__all__ = ["SubmissionClientBase", "SubmissionResult", "Web3FormsClient", "build_payload"]
