"""Public waitlist signup endpoint."""

from fastapi import APIRouter

from waitlist.api.dependencies import ClientIpDep, IntakeDep
from waitlist.models import SignupAcknowledgement, SignupSubmission

router = APIRouter(prefix="/api", tags=["Signup"])


@router.post("/signup", response_model=SignupAcknowledgement)
async def create_signup(
    submission: SignupSubmission,
    intake: IntakeDep,
    client_ip: ClientIpDep,
) -> SignupAcknowledgement:
    """Join the waitlist."""
    return await intake.submit(submission, client_ip)
