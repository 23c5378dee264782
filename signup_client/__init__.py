from signup_client.client import SignupClient, SignupClientError, SignupForm
from signup_client.precheck import PrecheckResult, precheck_submission

__all__ = [
    "SignupClient",
    "SignupClientError",
    "SignupForm",
    "PrecheckResult",
    "precheck_submission",
]
