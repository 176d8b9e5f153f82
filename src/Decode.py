from dataclasses import dataclass
from typing import Optional

from ALU import AluCmd


@dataclass
class DecodedInstr:
    dest: int # logical destination register
    op: AluCmd
    pc: int

    aRegTag: int           # logical source register
    bRegTag: Optional[int] # logical source register, None for immediate forms

    bValue: Optional[int] = None # immediate

# register forms: "add x3, x1, x2"
REG_OPS: dict[str, AluCmd] = {
    'add' : AluCmd.ADD,
    'sub' : AluCmd.SUB,
    'xor' : AluCmd.XOR,
    'or'  : AluCmd.OR,
    'and' : AluCmd.AND,
    'srl' : AluCmd.SRL,
    'sra' : AluCmd.SRA,
    'sll' : AluCmd.SLL,
    'eq'  : AluCmd.EQ,
    'ne'  : AluCmd.NE,
    'lt'  : AluCmd.LT,
    'ge'  : AluCmd.GE,
    'ltu' : AluCmd.LTU,
    'geu' : AluCmd.GEU,
    'bitc': AluCmd.BIT_C,
    'slt' : AluCmd.SLT,
    'sltu': AluCmd.SLTU,
}

# immediate forms: "addi x3, x1, 5"
IMM_OPS: dict[str, AluCmd] = {
    'addi' : AluCmd.ADD,
    'subi' : AluCmd.SUB,
    'xori' : AluCmd.XOR,
    'ori'  : AluCmd.OR,
    'andi' : AluCmd.AND,
    'srli' : AluCmd.SRL,
    'srai' : AluCmd.SRA,
    'slli' : AluCmd.SLL,
    'slti' : AluCmd.SLT,
    'sltiu': AluCmd.SLTU,
}


def _reg(token: str, instruction: str) -> int:
    if not (token.startswith('x') and token[1:].isdigit()):
        raise ValueError(f'bad register {token!r} in {instruction!r}')
    return int(token[1:])

def predecode(instruction: str, pc: int = 0) -> DecodedInstr:
    ''' predecode one textual instruction; unknown mnemonics decode to ILL '''
    try:
        op, regs = instruction.strip().split(' ', 1)
        dest, aRegTag, bRegTag = map(lambda x : x.strip(),
                                     regs.split(','))
    except ValueError:
        raise ValueError(f'expected "<op> xD, xA, xB|imm", got {instruction!r}') from None
    op = op.lower()

    # unknown mnemonics keep whichever operand form the text carries
    isImm = op in IMM_OPS or (op not in REG_OPS and not bRegTag.startswith('x'))
    if isImm:
        return DecodedInstr(dest=_reg(dest, instruction),
                            op=IMM_OPS.get(op, AluCmd.ILL),
                            pc=pc,
                            aRegTag=_reg(aRegTag, instruction),
                            bRegTag=None,
                            bValue=int(bRegTag, 0))
    return DecodedInstr(dest=_reg(dest, instruction),
                        op=REG_OPS.get(op, AluCmd.ILL),
                        pc=pc,
                        aRegTag=_reg(aRegTag, instruction),
                        bRegTag=_reg(bRegTag, instruction))
