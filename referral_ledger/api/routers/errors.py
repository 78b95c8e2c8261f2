from fastapi import HTTPException, status

from referral_ledger.services.errors import (
    LedgerError,
    NotFound,
    StateConflict,
    UnknownReferralCode,
    ValidationError,
)


def to_http(e: LedgerError) -> HTTPException:
    if isinstance(e, (NotFound, UnknownReferralCode)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, StateConflict):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
