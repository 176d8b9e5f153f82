from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional, Union
import logging

from ALU import AluCmd, u32
from Status import Status

logger = logging.getLogger(__name__)


def cmd_name(cmd) -> str:
    try:
        return AluCmd(cmd).name
    except ValueError:
        return str(cmd)


class OpType(IntEnum):
    REG = 0
    IMM = 1

@dataclass
class IsqEntry:
    operation: AluCmd
    physical_destination: int
    rob_index: int

    operand1_ready: bool = True
    operand1_value: int = 0
    operand1_tag: int = 0 # physical source register, meaningful while not ready

    operand2_ready: bool = True
    operand2_source: OpType = OpType.REG
    operand2_value: int = 0
    operand2_tag: int = 0

    source_bank: int = 0
    valid: bool = True

    @property
    def ready(self) -> bool:
        return self.operand1_ready and (self.operand2_ready or self.operand2_source == OpType.IMM)

''' slot array: entries leave the cycle they are selected '''
class ISQ:
    capacity: int = 32

    def __init__(self, capacity: Optional[int] = None, rob_capacity: Optional[int] = None) -> None:
        if capacity is not None:
            self.capacity = capacity
        if self.capacity < 1:
            raise ValueError(f'ISQ capacity must be positive, got {self.capacity}')
        # ring size of the ROB whose indices the entries carry; None means
        # rob_index is compared as a plain integer
        self.rob_capacity: Optional[int] = rob_capacity
        self.slots: list[Optional[IsqEntry]] = [None] * self.capacity

    def __len__(self) -> int:
        return sum(slot is not None for slot in self.slots)

    def available(self, size: int = 1) -> bool:
        return self.capacity - len(self) >= size

    def __getitem__(self, slot: int) -> Optional[IsqEntry]:
        entry = self.slots[slot]
        return replace(entry) if entry is not None else None

    def dispatch(self, entry: IsqEntry) -> Union[int, Status]:
        try:
            slot = self.slots.index(None)
        except ValueError:
            logger.debug('ISQ full (%d entries)', self.capacity)
            return Status.CAPACITY_EXCEEDED

        entry = replace(entry, valid=True)
        if entry.operand2_source == OpType.IMM:
            entry.operand2_ready = True
        self.slots[slot] = entry
        return slot

    def _age(self, entry: IsqEntry, oldest: int) -> int:
        if self.rob_capacity is None:
            return entry.rob_index - oldest
        return (entry.rob_index - oldest) % self.rob_capacity

    def select_ready(self, oldest: int = 0) -> Optional[IsqEntry]:
        ''' pick the ready entry closest to `oldest` (ROB head) and remove it '''
        best: Optional[int] = None
        for slot, entry in enumerate(self.slots):
            if entry is None or not entry.ready:
                continue
            if best is None or self._age(entry, oldest) < self._age(self.slots[best], oldest):
                best = slot
        if best is None:
            return None
        entry = self.slots[best]
        self.slots[best] = None
        entry.valid = False
        return entry

    def wakeup(self, tag: int, value: int) -> int:
        ''' associative broadcast over every slot; returns operands resolved '''
        woken = 0
        for entry in self.slots:
            if entry is None:
                continue
            if (not entry.operand1_ready) and entry.operand1_tag == tag:
                entry.operand1_value = value
                entry.operand1_ready = True
                woken += 1
            if (not entry.operand2_ready) and entry.operand2_source == OpType.REG \
               and entry.operand2_tag == tag:
                entry.operand2_value = value
                entry.operand2_ready = True
                woken += 1
        return woken

    def dump(self) -> list[dict]:
        def entry2dict(entry: Optional[IsqEntry]) -> dict:
            if entry is None:
                return {'Valid': False}
            return {'Valid': True,
                    'AluCmd': cmd_name(entry.operation),

                    'Op1Ready': entry.operand1_ready,
                    'Op1Tag': entry.operand1_tag,
                    'Op1Value': u32(entry.operand1_value),

                    'Op2Ready': entry.operand2_ready,
                    'Op2Type': OpType(entry.operand2_source).name,
                    'Op2Tag': entry.operand2_tag,
                    'Op2Value': u32(entry.operand2_value),

                    'PhysDest': entry.physical_destination,
                    'Bank': entry.source_bank,
                    'RobIndex': entry.rob_index}
        return list(map(entry2dict, self.slots))
