from enum import Enum


class Status(Enum):
    ''' non-fatal outcome of an allocation: caller stalls and retries '''
    CAPACITY_EXCEEDED = 'CAPACITY_EXCEEDED'


class Fault(Enum):
    ILLEGAL_OPERATION = 'ILLEGAL_OPERATION'


class InvalidIndexError(KeyError):
    ''' ROB index does not name a live entry (broadcast/ROB desynchronization) '''


class InvariantViolation(AssertionError):
    pass
