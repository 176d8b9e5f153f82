"""
ALU tests: one group per command family, plus the signed/unsigned
duality on operands with the sign bit set and ILLEGAL fault results.
"""

import pytest

from ALU import ALU, ALUEntry, AluCmd, AluResult, evaluate, s32, u32
from ISQ import IsqEntry
from Status import Fault


class TestArithmetic:
    def test_add(self):
        assert evaluate(AluCmd.ADD, 2, 3) == AluResult(5)

    def test_add_wraps(self):
        assert evaluate(AluCmd.ADD, 0xFFFFFFFF, 1).value == 0

    def test_sub_wraps_below_zero(self):
        assert evaluate(AluCmd.SUB, 0, 1).value == 0xFFFFFFFF

    def test_negative_inputs_are_bit_patterns(self):
        assert evaluate(AluCmd.ADD, -1, 2).value == 1


class TestLogical:
    def test_xor_or_and(self):
        assert evaluate(AluCmd.XOR, 0b1100, 0b1010).value == 0b0110
        assert evaluate(AluCmd.OR, 0b1100, 0b1010).value == 0b1110
        assert evaluate(AluCmd.AND, 0b1100, 0b1010).value == 0b1000

    def test_bit_clear(self):
        assert evaluate(AluCmd.BIT_C, 0xFF, 0x0F).value == 0xF0


class TestShifts:
    def test_sll(self):
        assert evaluate(AluCmd.SLL, 1, 4).value == 16

    def test_sll_drops_high_bits(self):
        assert evaluate(AluCmd.SLL, 0x80000001, 1).value == 2

    def test_shift_amount_uses_low_five_bits(self):
        assert evaluate(AluCmd.SLL, 1, 33).value == 2

    def test_srl_fills_with_zero(self):
        assert evaluate(AluCmd.SRL, 0x80000000, 4).value == 0x08000000

    def test_sra_keeps_sign(self):
        assert evaluate(AluCmd.SRA, 0x80000000, 4).value == 0xF8000000

    def test_sra_positive(self):
        assert evaluate(AluCmd.SRA, 0x40, 4).value == 0x4


class TestComparisons:
    def test_eq_ne(self):
        assert evaluate(AluCmd.EQ, 7, 7).value == 1
        assert evaluate(AluCmd.EQ, 7, 8).value == 0
        assert evaluate(AluCmd.NE, 7, 8).value == 1

    def test_lt_signed_vs_ltu_unsigned(self):
        """-1 < 1 signed, but 0xFFFFFFFF > 1 unsigned."""
        assert evaluate(AluCmd.LT, -1, 1).value == 1
        assert evaluate(AluCmd.LTU, -1, 1).value == 0

    def test_ge_signed_vs_geu_unsigned(self):
        assert evaluate(AluCmd.GE, 0x80000000, 0).value == 0
        assert evaluate(AluCmd.GEU, 0x80000000, 0).value == 1

    def test_slt_sltu_duality(self):
        assert evaluate(AluCmd.SLT, 0xFFFFFFFE, 3).value == 1
        assert evaluate(AluCmd.SLTU, 0xFFFFFFFE, 3).value == 0

    @pytest.mark.parametrize('cmd', [AluCmd.EQ, AluCmd.NE, AluCmd.LT, AluCmd.GE,
                                     AluCmd.LTU, AluCmd.GEU, AluCmd.SLT, AluCmd.SLTU])
    def test_comparisons_are_single_bit(self, cmd):
        assert evaluate(cmd, 0x80000000, 5).value in (0, 1)


class TestIllegal:
    @pytest.mark.parametrize('a, b', [(0, 0), (1, 2), (-1, 0xFFFFFFFF)])
    def test_illegal_faults(self, a, b):
        result = evaluate(AluCmd.ILL, a, b)
        assert result.faulted
        assert result.fault is Fault.ILLEGAL_OPERATION

    def test_unknown_command_value_faults(self):
        assert evaluate(99, 1, 2).fault is Fault.ILLEGAL_OPERATION

    def test_raw_int_command_accepted(self):
        assert evaluate(int(AluCmd.ADD), 1, 2) == AluResult(3)

    def test_legal_results_carry_no_fault(self):
        assert not evaluate(AluCmd.SUB, 1, 2).faulted


class TestHelpers:
    def test_u32_s32(self):
        assert u32(-1) == 0xFFFFFFFF
        assert s32(0xFFFFFFFF) == -1
        assert s32(0x7FFFFFFF) == 0x7FFFFFFF


class TestPipe:
    def _job(self, rob_index, a, b, cmd=AluCmd.ADD):
        return IsqEntry(operation=cmd, physical_destination=40 + rob_index,
                        rob_index=rob_index, operand1_value=a, operand2_value=b)

    def test_single_cycle_latency(self):
        alu = ALU()
        out = alu.execute(self._job(0, 2, 3))
        assert out == ALUEntry(dest=40, rob_index=0, result=AluResult(5))
        assert not alu.busy

    def test_two_cycle_latency(self):
        alu = ALU(latency=2)
        assert alu.execute(self._job(0, 2, 3)) is None
        assert alu.busy
        out = alu.execute(None)
        assert out.rob_index == 0 and out.result.value == 5
        assert not alu.busy

    def test_bubble(self):
        assert ALU().execute(None) is None

    def test_fault_flows_out(self):
        out = ALU().execute(self._job(3, 1, 1, cmd=AluCmd.ILL))
        assert out.result.fault is Fault.ILLEGAL_OPERATION

    def test_rejects_zero_latency(self):
        with pytest.raises(ValueError):
            ALU(latency=0)
