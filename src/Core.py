from dataclasses import dataclass
from typing import Any, Optional, Union
import logging

from ALU      import ALU, ALUEntry, AluCmd, AluResult
from Decode   import DecodedInstr, predecode
from ISQ      import ISQ, IsqEntry, OpType, cmd_name
from RegFiles import RegFiles
from ROB      import ROB
from Status   import Status, Fault

logger = logging.getLogger(__name__)


@dataclass
class MicroOp:
    ''' decoded, renamed micro-operation as delivered by the front end '''
    operation: AluCmd
    physical_destination: int
    architectural_destination: int

    operand1_ready: bool = True
    operand1_value: int = 0
    operand1_tag: int = 0

    operand2_ready: bool = True
    operand2_source: OpType = OpType.REG
    operand2_value: int = 0
    operand2_tag: int = 0

    source_bank: int = 0

@dataclass(frozen=True)
class Retirement:
    ''' commit output: apply `value` to `architectural_destination` '''
    rob_index: int
    architectural_destination: int
    physical_destination: int
    value: int
    fault: Optional[Fault] = None


class OoOCore:
    commit_width: int = 1
    num_ar      : int = 32
    num_pr      : int = 64

    def __init__(self,
                 program: Optional[list[str]] = None,
                 rob_capacity: Optional[int] = None,
                 rob_banks: Optional[int] = None,
                 isq_capacity: Optional[int] = None,
                 alu_latency: Optional[int] = None,
                 commit_width: Optional[int] = None,
                 num_ar: Optional[int] = None,
                 num_pr: Optional[int] = None) -> None:
        if commit_width is not None:
            self.commit_width = commit_width
        if self.commit_width < 1:
            raise ValueError(f'commit width must be at least 1, got {self.commit_width}')
        if num_ar is not None:
            self.num_ar = num_ar
        if num_pr is not None:
            self.num_pr = num_pr

        self.iCache: list[str] = list(program or []) # instructions
        self.pc    : int = 0
        self.stalled: Optional[DecodedInstr] = None   # instruction refused dispatch last cycle

        self.rob: ROB = ROB(rob_capacity, rob_banks)
        self.isq: ISQ = ISQ(isq_capacity, rob_capacity=self.rob.capacity)
        self.alu: ALU = ALU(alu_latency)
        self.regs: RegFiles = RegFiles(self.num_ar, self.num_pr, banks=self.rob.banks)

        self.cycle  : int = 0
        self.retired: list[Retirement] = []   # every commit so far, in order
        self.lastRetired: list[Retirement] = []
        # ROB indices whose destination was renamed here; their commit
        # releases the previous mapping to the free list
        self.owned: set[int] = set()

    # ══════════════════════════════════════════════
    # Front-end ingestion
    # ══════════════════════════════════════════════

    def dispatch(self, uop: MicroOp) -> Union[int, Status]:
        ''' allocate ROB then ISQ in program order; a stall touches neither '''
        if not (self.rob.available() and self.isq.available()):
            logger.debug('dispatch stall: ROB %d/%d, ISQ %d/%d',
                         len(self.rob), self.rob.capacity, len(self.isq), self.isq.capacity)
            return Status.CAPACITY_EXCEEDED
        if not 0 <= uop.physical_destination < self.num_pr:
            raise ValueError(f'physical register p{uop.physical_destination} out of range (0..{self.num_pr - 1})')

        robIdx = self.rob.allocate(uop.architectural_destination, uop.physical_destination)
        self.isq.dispatch(IsqEntry(operation=uop.operation,
                                   physical_destination=uop.physical_destination,
                                   rob_index=robIdx,
                                   operand1_ready=uop.operand1_ready,
                                   operand1_value=uop.operand1_value,
                                   operand1_tag=uop.operand1_tag,
                                   operand2_ready=uop.operand2_ready,
                                   operand2_source=uop.operand2_source,
                                   operand2_value=uop.operand2_value,
                                   operand2_tag=uop.operand2_tag,
                                   source_bank=uop.source_bank))
        return robIdx

    def rename(self, instr: DecodedInstr) -> Union[MicroOp, Status]:
        ''' rename a decoded instruction against the current map tables '''
        for ar in (instr.dest, instr.aRegTag, instr.bRegTag):
            if ar is not None and not 0 <= ar < self.num_ar:
                raise ValueError(f'register x{ar} out of range at pc {instr.pc}')
        if not self.regs.freeList.available():
            logger.debug('rename stall: free list empty')
            return Status.CAPACITY_EXCEEDED

        # Sources are read before the destination is remapped, so
        # "add x4, x4, x1" waits on the old x4.
        aReady, aTag, aValue = self.regs.lookup(instr.aRegTag)
        immB = instr.bRegTag is None
        if immB:
            bReady, bTag, bValue = True, 0, instr.bValue
        else:
            bReady, bTag, bValue = self.regs.lookup(instr.bRegTag)
        new = self.regs.rename(instr.dest)
        return MicroOp(operation=instr.op,
                       physical_destination=new,
                       architectural_destination=instr.dest,
                       operand1_ready=aReady,
                       operand1_value=aValue,
                       operand1_tag=(0 if aReady else aTag),
                       operand2_ready=bReady,
                       operand2_source=(OpType.IMM if immB else OpType.REG),
                       operand2_value=bValue,
                       operand2_tag=(0 if bReady else bTag),
                       source_bank=self.regs.bank(aTag))

    # ══════════════════════════════════════════════
    # Broadcast / wakeup
    # ══════════════════════════════════════════════

    def broadcast(self, physical_destination: int, rob_index: int, result: AluResult) -> None:
        ''' publish a result: complete the ROB entry, wake dependents, write the PRF '''
        if not 0 <= physical_destination < self.num_pr:
            raise ValueError(f'physical register p{physical_destination} out of range (0..{self.num_pr - 1})')
        # dependents of a faulting op still drain with a zero operand
        value = 0 if result.faulted else result.value
        # validates the index before any state changes
        self.rob.mark_complete(rob_index, result.fault)
        woken = self.isq.wakeup(physical_destination, value)
        self.regs.write(physical_destination, value)
        logger.debug('broadcast p%d=%d -> ROB[%d], %d operand(s) woken',
                     physical_destination, value, rob_index, woken)

    # ══════════════════════════════════════════════
    # Cycle
    # ══════════════════════════════════════════════

    @property
    def done(self) -> bool:
        return self.pc >= len(self.iCache) and self.stalled is None \
               and len(self.rob) == 0 and not self.alu.busy

    def next(self) -> bool:
        ''' advance one cycle; returns True once the program has drained
            phase order: C < D < I < EX/broadcast
            Commit runs first, so it sees completions of earlier cycles only.
        '''
        self.cycle += 1
        logger.debug('cycle %02d', self.cycle)

        # C
        self.lastRetired = []
        for _ in range(self.commit_width):
            committed = self.rob.commit()
            if committed is None: # head not ready: stall
                break
            pr = committed.physical_destination
            value = self.regs.prf[pr]
            retirement = Retirement(rob_index=committed.rob_index,
                                    architectural_destination=committed.architectural_destination,
                                    physical_destination=pr,
                                    value=value,
                                    fault=committed.fault)
            if committed.rob_index in self.owned:
                self.owned.discard(committed.rob_index)
                old = self.regs.retire(committed.architectural_destination, pr)
                self.regs.freeList.append(old)
            if committed.fault is not None:
                logger.warning('ROB[%d] retired with fault %s',
                               committed.rob_index, committed.fault.name)
            else:
                logger.debug('commit ROB[%d]: x%d <- %d',
                             committed.rob_index, committed.architectural_destination, value)
            self.lastRetired.append(retirement)
            self.retired.append(retirement)

        # D: one instruction per cycle, retried while stalled
        instr = self.stalled
        if instr is None and self.pc < len(self.iCache):
            instr = predecode(self.iCache[self.pc], self.pc)
            self.pc += 1
        if instr is not None:
            self.stalled = instr
            if self.rob.available() and self.isq.available():
                uop = self.rename(instr)
                if uop is not Status.CAPACITY_EXCEEDED:
                    robIdx = self.dispatch(uop)
                    self.owned.add(robIdx)
                    self.stalled = None
                    logger.debug('dispatch pc %d -> ROB[%d] p%d', instr.pc, robIdx,
                                 uop.physical_destination)
            else:
                logger.debug('dispatch stall at pc %d', instr.pc)

        # I
        job: Optional[IsqEntry] = self.isq.select_ready(oldest=self.rob.head)
        if job is not None:
            logger.debug('issue ROB[%d] %s', job.rob_index, cmd_name(job.operation))

        # EX + broadcast
        finished: Optional[ALUEntry] = self.alu.execute(job)
        if finished is not None:
            self.broadcast(finished.dest, finished.rob_index, finished.result)

        self.rob.check_invariants()
        return self.done

    def dump(self) -> dict[str, Any]:
        ''' dump internal state '''
        def retirement2dict(r: Retirement) -> dict:
            return {'RobIndex': r.rob_index,
                    'ArchDest': r.architectural_destination,
                    'PhysDest': r.physical_destination,
                    'Value': r.value,
                    'Fault': r.fault.value if r.fault else None}

        state = {'Cycle': self.cycle,
                 'PC': self.pc,
                 'ReorderBuffer': self.rob.dump(),
                 'IssueQueue': self.isq.dump(),
                 'Retired': list(map(retirement2dict, self.lastRetired))}
        state.update(self.regs.dump())
        return state
