"""
Predecode tests for the textual instruction format read by the driver.
"""

import pytest

from ALU import AluCmd
from Decode import DecodedInstr, predecode


class TestRegisterForms:
    def test_add(self):
        assert predecode('add x3, x1, x2', pc=4) == DecodedInstr(dest=3, op=AluCmd.ADD, pc=4,
                                                                 aRegTag=1, bRegTag=2)

    @pytest.mark.parametrize('mnemonic, cmd', [('bitc', AluCmd.BIT_C), ('sltu', AluCmd.SLTU),
                                               ('sra', AluCmd.SRA), ('GEU', AluCmd.GEU)])
    def test_mnemonics(self, mnemonic, cmd):
        assert predecode(f'{mnemonic} x1, x2, x3').op is cmd


class TestImmediateForms:
    def test_addi(self):
        instr = predecode('addi x1, x0, 5')
        assert instr.bRegTag is None and instr.bValue == 5

    def test_negative_and_hex(self):
        assert predecode('addi x1, x0, -3').bValue == -3
        assert predecode('andi x1, x2, 0xff').bValue == 0xFF

    def test_sltiu(self):
        assert predecode('sltiu x1, x2, 1').op is AluCmd.SLTU


class TestIllegal:
    def test_unknown_register_form(self):
        instr = predecode('mul x2, x1, x1')
        assert instr.op is AluCmd.ILL and instr.bRegTag == 1

    def test_unknown_immediate_form(self):
        instr = predecode('muli x2, x1, 4')
        assert instr.op is AluCmd.ILL and instr.bValue == 4


class TestMalformed:
    @pytest.mark.parametrize('text', ['add x1, x2', 'nop', 'add y1, x2, x3', 'addi x1, x2, five'])
    def test_raises(self, text):
        with pytest.raises(ValueError):
            predecode(text)
