from typing import Optional

from ALU import u32
from FreeList import FreeList


class RegFiles:
    ''' Rename state shared by dispatch and commit.

        rename map table: architectural -> newest physical (speculative)
        commit map table: architectural -> physical at the last commit
        physical register file + busy bit per physical register
    '''
    banks: int = 2

    def __init__(self, num_ar: Optional[int] = None, num_pr: Optional[int] = None,
                 banks: Optional[int] = None) -> None:
        if banks is not None:
            self.banks = banks
        self.freeList: FreeList = FreeList(num_ar, num_pr)
        self.num_ar: int = self.freeList.num_ar
        self.num_pr: int = self.freeList.num_pr

        self.renameMap: list[int] = list(range(self.num_ar))
        self.commitMap: list[int] = list(range(self.num_ar))
        self.busy: list[bool] = [False,] * self.num_pr
        self.prf : list[int]  = [0,] * self.num_pr

    def bank(self, pr: int) -> int:
        return pr % self.banks

    def lookup(self, ar: int) -> tuple[bool, int, int]:
        ''' (ready, physical tag, value) for a source operand '''
        pr = self.renameMap[ar]
        if self.busy[pr]:
            return False, pr, 0
        return True, pr, self.prf[pr]

    def rename(self, ar: int) -> int:
        ''' map `ar` to a fresh physical register; caller checks the free list '''
        new = self.freeList.popleft()
        self.busy[new] = True
        self.renameMap[ar] = new
        return new

    def write(self, pr: int, value: int) -> None:
        self.prf[pr] = u32(value)
        self.busy[pr] = False

    def retire(self, ar: int, pr: int) -> int:
        ''' make `pr` the committed mapping of `ar`; returns the register it replaced '''
        old = self.commitMap[ar]
        self.commitMap[ar] = pr
        return old

    def dump(self) -> dict:
        return {'RenameMapTable': list(self.renameMap),
                'CommitMapTable': list(self.commitMap),
                'PhysicalRegisterFile': list(self.prf),
                'BusyBitTable': list(self.busy),
                'FreeList': self.freeList.dump()}
