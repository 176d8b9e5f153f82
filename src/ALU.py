from dataclasses import dataclass
from collections import deque
from enum import IntEnum
from typing import Callable, Optional
import logging

from Status import Fault

logger = logging.getLogger(__name__)

XLEN: int = 32
MASK: int = (1 << XLEN) - 1


def u32(x: int) -> int:
    return x & MASK

def s32(x: int) -> int:
    x &= MASK
    return x - (1 << XLEN) if x >> (XLEN - 1) else x


class AluCmd(IntEnum):
    ADD   = 0
    SUB   = 1
    XOR   = 2
    OR    = 3
    AND   = 4
    SRL   = 5
    SRA   = 6
    SLL   = 7
    EQ    = 8
    NE    = 9
    LT    = 10
    GE    = 11
    LTU   = 12
    GEU   = 13
    BIT_C = 14
    SLT   = 15
    SLTU  = 16
    ILL   = 17


@dataclass(frozen=True)
class AluResult:
    value: int
    fault: Optional[Fault] = None

    @property
    def faulted(self) -> bool:
        return self.fault is not None


def _shamt(b: int) -> int:
    return b & (XLEN - 1)

# Operands arrive as unsigned XLEN-bit patterns.
_OPS: dict[AluCmd, Callable[[int, int], int]] = {
    AluCmd.ADD  : lambda a, b: a + b,
    AluCmd.SUB  : lambda a, b: a - b,
    AluCmd.XOR  : lambda a, b: a ^ b,
    AluCmd.OR   : lambda a, b: a | b,
    AluCmd.AND  : lambda a, b: a & b,
    AluCmd.SRL  : lambda a, b: a >> _shamt(b),
    AluCmd.SRA  : lambda a, b: s32(a) >> _shamt(b),
    AluCmd.SLL  : lambda a, b: a << _shamt(b),
    AluCmd.EQ   : lambda a, b: int(a == b),
    AluCmd.NE   : lambda a, b: int(a != b),
    AluCmd.LT   : lambda a, b: int(s32(a) < s32(b)),
    AluCmd.GE   : lambda a, b: int(s32(a) >= s32(b)),
    AluCmd.LTU  : lambda a, b: int(a < b),
    AluCmd.GEU  : lambda a, b: int(a >= b),
    AluCmd.BIT_C: lambda a, b: a & ~b,
    AluCmd.SLT  : lambda a, b: int(s32(a) < s32(b)),
    AluCmd.SLTU : lambda a, b: int(a < b),
}

_missing = set(AluCmd) - set(_OPS) - {AluCmd.ILL}
if _missing:
    raise ImportError(f'ALU commands without semantics: {sorted(c.name for c in _missing)}')


def evaluate(cmd, a: int, b: int) -> AluResult:
    ''' pure, total: anything that is not a defined command faults '''
    try:
        cmd = AluCmd(cmd)
    except ValueError:
        return AluResult(value=0, fault=Fault.ILLEGAL_OPERATION)
    if cmd is AluCmd.ILL:
        return AluResult(value=0, fault=Fault.ILLEGAL_OPERATION)
    return AluResult(value=u32(_OPS[cmd](u32(a), u32(b))))


@dataclass
class ALUEntry:
    dest: int      # physical destination register
    rob_index: int
    result: AluResult

class ALU:
    latency: int = 1

    def __init__(self, latency: Optional[int] = None) -> None:
        if latency is not None:
            self.latency = latency
        if self.latency < 1:
            raise ValueError(f'ALU latency must be at least 1, got {self.latency}')
        # one slot per cycle; None is a bubble
        self.pipe: deque[Optional[ALUEntry]] = deque()

    def __len__(self) -> int:
        return sum(entry is not None for entry in self.pipe)

    @property
    def busy(self) -> bool:
        return len(self) > 0

    def execute(self, job) -> Optional[ALUEntry]:
        ''' accept this cycle's issued ISQ entry (or None), return the result
            leaving the last stage this cycle
        '''
        entry: Optional[ALUEntry] = None
        if job is not None:
            result = evaluate(job.operation, job.operand1_value, job.operand2_value)
            if result.faulted:
                logger.debug('ALU fault %s on ROB[%d]', result.fault.name, job.rob_index)
            entry = ALUEntry(dest=job.physical_destination,
                             rob_index=job.rob_index,
                             result=result)
        self.pipe.append(entry)
        if len(self.pipe) >= self.latency:
            return self.pipe.popleft()
        return None
