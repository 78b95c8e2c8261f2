class LedgerError(Exception): ...

class NotFound(LedgerError): ...

class ValidationError(LedgerError): ...
class InvalidAmount(ValidationError): ...
class InvalidRate(ValidationError): ...
class InvalidReferralCode(ValidationError): ...
class InvalidBankDetails(ValidationError): ...

class StateConflict(LedgerError): ...
class InvalidStateTransition(StateConflict): ...
class DuplicateOrder(StateConflict): ...
class NoFundsAvailable(StateConflict): ...

class UnknownReferralCode(LedgerError): ...
