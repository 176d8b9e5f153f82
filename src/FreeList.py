from collections import deque
from typing import Optional


''' FIFO of unmapped physical registers '''
class FreeList:
    num_ar: int = 32
    num_pr: int = 64

    def __init__(self, num_ar: Optional[int] = None, num_pr: Optional[int] = None) -> None:
        if num_ar is not None:
            self.num_ar = num_ar
        if num_pr is not None:
            self.num_pr = num_pr
        if self.num_pr <= self.num_ar:
            raise ValueError(f'{self.num_pr} physical registers cannot rename {self.num_ar} architectural ones')
        # physical registers 0..num_ar-1 start out mapped
        self.free: deque[int] = deque(range(self.num_ar, self.num_pr))

    @property
    def capacity(self) -> int:
        return self.num_pr - self.num_ar

    def __len__(self) -> int:
        return len(self.free)

    def available(self, size: int = 1) -> bool:
        return len(self) >= size

    def popleft(self) -> int:
        return self.free.popleft()

    def append(self, pr: int) -> None:
        if len(self.free) >= self.capacity:
            raise OverflowError(f'free list already holds {self.capacity} registers, cannot release p{pr}')
        self.free.append(pr)

    def dump(self) -> list[int]:
        return list(self.free)
