from dataclasses import dataclass, replace
from typing import Optional, Union
import logging

from Status import Status, Fault, InvalidIndexError, InvariantViolation

logger = logging.getLogger(__name__)


@dataclass
class RobEntry:
    valid: bool = False
    physical_destination: int = 0
    architectural_destination: int = 0
    commit_ready: bool = False
    fault: Optional[Fault] = None

@dataclass(frozen=True)
class CommitEntry:
    rob_index: int
    architectural_destination: int
    physical_destination: int
    fault: Optional[Fault] = None

''' circular buffer, program order from head to tail '''
class ROB:
    capacity: int = 32
    banks   : int = 2

    def __init__(self, capacity: Optional[int] = None, banks: Optional[int] = None) -> None:
        if capacity is not None:
            self.capacity = capacity
        if banks is not None:
            self.banks = banks
        if self.capacity < 1 or self.banks < 1 or self.capacity % self.banks:
            raise ValueError(f'ROB capacity {self.capacity} must be a positive multiple of {self.banks} banks')

        self.entries: list[RobEntry] = [RobEntry() for _ in range(self.capacity)]
        self.head : int = 0 # oldest live entry
        self.tail : int = 0 # next slot to allocate
        self.count: int = 0

    def __len__(self) -> int:
        return self.count

    def available(self, size: int = 1) -> bool:
        return self.capacity - self.count >= size

    def __getitem__(self, idx: int) -> RobEntry:
        return replace(self.entries[idx]) # read-only copy

    def __contains__(self, idx: int) -> bool:
        return 0 <= idx < self.capacity and self.entries[idx].valid

    def age(self, idx: int) -> int:
        ''' distance from head in program order '''
        return (idx - self.head) % self.capacity

    def live(self) -> list[int]:
        ''' live indices in program order '''
        return [(self.head + i) % self.capacity for i in range(self.count)]

    def allocate(self, architectural_destination: int,
                 physical_destination: int) -> Union[int, Status]:
        if not self.available():
            logger.debug('ROB full (%d entries)', self.count)
            return Status.CAPACITY_EXCEEDED

        idx = self.tail
        self.entries[idx] = RobEntry(valid=True,
                                     physical_destination=physical_destination,
                                     architectural_destination=architectural_destination,
                                     commit_ready=False)
        self.tail = (self.tail + 1) % self.capacity
        self.count += 1
        return idx

    def mark_complete(self, idx: int, fault: Optional[Fault] = None) -> None:
        if idx not in self:
            raise InvalidIndexError(f'ROB[{idx}] is not a live entry')
        entry = self.entries[idx]
        entry.commit_ready = True
        if fault is not None: # a repeat completion never clears a fault
            entry.fault = fault

    def commit(self) -> Optional[CommitEntry]:
        ''' retire head if it has completed; None is a stall '''
        if self.count == 0:
            return None
        entry = self.entries[self.head]
        if not entry.commit_ready:
            return None

        committed = CommitEntry(rob_index=self.head,
                                architectural_destination=entry.architectural_destination,
                                physical_destination=entry.physical_destination,
                                fault=entry.fault)
        self.entries[self.head] = RobEntry()
        self.head = (self.head + 1) % self.capacity
        self.count -= 1
        return committed

    def check_invariants(self) -> None:
        if not 0 <= self.count <= self.capacity:
            raise InvariantViolation(f'ROB count {self.count} out of range')
        span = (self.tail - self.head) % self.capacity
        if span != self.count % self.capacity:
            raise InvariantViolation(f'ROB head {self.head}, tail {self.tail} disagree with count {self.count}')
        window = set(self.live())
        for idx, entry in enumerate(self.entries):
            if entry.valid != (idx in window):
                raise InvariantViolation(f'ROB[{idx}] valid={entry.valid} outside/inside the live window')

    def dump(self) -> list[list[dict]]:
        ''' rows of banks: slot i sits at row i // banks, bank i % banks '''
        def entry2dict(entry: RobEntry) -> dict:
            return {'Valid': entry.valid,
                    'ArchDest': entry.architectural_destination,
                    'PhysDest': entry.physical_destination,
                    'CommitReady': entry.commit_ready,
                    'Fault': entry.fault.value if entry.fault else None}
        rows = self.capacity // self.banks
        return [[entry2dict(self.entries[row * self.banks + bank]) for bank in range(self.banks)]
                for row in range(rows)]
