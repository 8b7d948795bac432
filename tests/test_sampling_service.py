"""
Tests for the ISO 2859-1 lookup tables and plan derivation.

Covers:
1. The reference scenarios (code letter, sample size, Ac/Re)
2. Lot size range boundaries (upper bounds are inclusive)
3. Monotonicity by lot size and by inspection level
4. Invalid lot sizes produce no plan
5. Fallbacks for unknown AQLs, code letters and levels
"""
import math

import pytest
from pydantic import ValidationError

from models.schemas import AcceptReject, InspectionLevel, SamplingPlanResult
from services.sampling_service import SamplingService, derive_plan, sampling_service


LEVELS = [InspectionLevel.I, InspectionLevel.II, InspectionLevel.III]


def letter_index(letter):
    return SamplingService.CODE_LETTERS.index(letter)


class TestReferenceScenarios:
    """Known plans straight from the standard tables."""

    def test_lot_100_level_ii(self):
        plan = derive_plan(100, InspectionLevel.II, 2.5, 4.0)

        assert plan.code_letter == "F"
        assert plan.sample_size == 20
        assert plan.major == AcceptReject(ac=2, re=3)
        assert plan.minor == AcceptReject(ac=3, re=4)

    def test_lot_10000_level_ii(self):
        plan = derive_plan(10000, "II")
        assert plan.code_letter == "L"
        assert plan.sample_size == 200

    def test_lot_5_level_ii(self):
        plan = derive_plan(5, "II")
        assert plan.code_letter == "A"
        assert plan.sample_size == 2

    def test_level_iii_samples_at_least_level_i(self):
        relaxed = derive_plan(100, "I", 2.5, 4.0)
        tight = derive_plan(100, "III", 2.5, 4.0)

        assert relaxed.code_letter == "D"
        assert tight.code_letter == "G"
        assert tight.sample_size >= relaxed.sample_size

    def test_largest_lots(self):
        assert derive_plan(10**9, "II").code_letter == "Q"
        assert derive_plan(10**9, "III").code_letter == "Q"
        assert derive_plan(10**9, "I").code_letter == "N"

    def test_defaults_are_level_ii_major_2_5_minor_4_0(self):
        assert derive_plan(100) == derive_plan(100, InspectionLevel.II, 2.5, 4.0)


class TestLotSizeBoundaries:
    """A lot size equal to a limit belongs to that limit's range."""

    @pytest.mark.parametrize("level", LEVELS)
    def test_each_threshold_and_next_value(self, level):
        letters = SamplingService.LEVEL_CODE_LETTERS[level]
        limits = SamplingService.LOT_SIZE_LIMITS

        for i, limit in enumerate(limits[:-1]):
            assert sampling_service.code_letter_for(level, limit) == letters[i]
            assert sampling_service.code_letter_for(level, limit + 1) == letters[i + 1]

    def test_range_index_is_inclusive(self):
        assert sampling_service.lot_size_index(8) == 0
        assert sampling_service.lot_size_index(9) == 1
        assert sampling_service.lot_size_index(500000) == 13
        assert sampling_service.lot_size_index(500001) == 14

    def test_missing_open_ended_range_clamps_to_last(self):
        class TruncatedTables(SamplingService):
            LOT_SIZE_LIMITS = (8, 15, 25)

        service = TruncatedTables()
        assert service.lot_size_index(1000) == 2
        assert service.code_letter_for("II", 1000) == "C"


class TestMonotonicity:
    LOT_SIZES = [1, 2, 7, 8, 9, 20, 51, 91, 151, 300, 501, 1201, 3201,
                 10001, 35001, 150001, 500001, 10**7]

    @pytest.mark.parametrize("level", LEVELS)
    def test_code_letter_never_decreases_with_lot_size(self, level):
        indexes = [letter_index(sampling_service.code_letter_for(level, n)) for n in self.LOT_SIZES]
        assert indexes == sorted(indexes)

    def test_tighter_level_never_picks_smaller_letter(self):
        for n in self.LOT_SIZES:
            i, ii, iii = (letter_index(sampling_service.code_letter_for(level, n)) for level in LEVELS)
            assert i <= ii <= iii


class TestPlanInvariants:

    def test_reject_is_accept_plus_one_everywhere(self):
        for letter in SamplingService.CODE_LETTERS:
            for aql in SamplingService.VALID_AQLS:
                limits = sampling_service.accept_reject(letter, aql)
                assert limits.re - limits.ac == 1

    def test_every_derived_plan_is_well_formed(self):
        for level in LEVELS:
            for n in [1, 8, 100, 5000, 10**6]:
                for aql in SamplingService.VALID_AQLS:
                    plan = derive_plan(n, level, aql, aql)
                    assert plan.sample_size >= 2
                    assert plan.code_letter in SamplingService.CODE_LETTERS
                    assert plan.major.re == plan.major.ac + 1
                    assert plan.minor.re == plan.minor.ac + 1

    def test_same_inputs_give_equal_plans(self):
        first = derive_plan(1234, "III", 1.5, 6.5)
        second = derive_plan(1234, "III", 1.5, 6.5)

        assert first == second
        assert first is not second

    def test_plan_is_immutable(self):
        plan = derive_plan(100)
        with pytest.raises(ValidationError):
            plan.sample_size = 99

    def test_tables_pass_integrity_check(self):
        assert sampling_service.verify_tables() == []

    def test_integrity_check_reports_broken_cell(self):
        class BrokenTables(SamplingService):
            TABLE_2A = {**SamplingService.TABLE_2A, 'F': {0.65: (0, 1), 1.0: (1, 3)}}

        problems = BrokenTables().verify_tables()
        assert any("F @ AQL 1.0" in p for p in problems)
        assert any("Missing Ac/Re for F @ AQL 2.5" in p for p in problems)


class TestInvalidLotSize:
    """No lot size, no plan - never a zero-filled or code A plan."""

    @pytest.mark.parametrize("lot_size", [0, -5, None, "", "abc", float("nan"), math.inf, True])
    def test_returns_none(self, lot_size):
        assert derive_plan(lot_size, "II", 2.5, 4.0) is None

    def test_numeric_strings_and_floats_are_accepted(self):
        assert derive_plan("100").code_letter == "F"
        assert derive_plan(100.0).code_letter == "F"

    def test_huge_integer_lot_is_largest_range(self):
        assert derive_plan(10**400, "II").code_letter == "Q"
        assert derive_plan(10**400, "I").code_letter == "N"
        assert derive_plan(str(10**400), "II").code_letter == "Q"
        assert derive_plan(-10**400, "II") is None

    def test_calculate_sample_size(self):
        assert sampling_service.calculate_sample_size(100) == 20
        assert sampling_service.calculate_sample_size(0) is None


class TestFallbacks:

    def test_unsupported_aql_is_strictest_plan(self):
        plan = derive_plan(100, "II", 9.9, 4.0)
        assert plan.major == AcceptReject(ac=0, re=1)
        assert plan.minor == AcceptReject(ac=3, re=4)

    @pytest.mark.parametrize("aql", [None, "x", float("nan"), 0.1])
    def test_unusable_aql_is_strictest_plan(self, aql):
        assert sampling_service.accept_reject("K", aql) == AcceptReject(ac=0, re=1)

    def test_aql_spellings_resolve_to_same_cell(self):
        expected = AcceptReject(ac=1, re=2)
        assert sampling_service.accept_reject("F", 1.0) == expected
        assert sampling_service.accept_reject("F", 1) == expected
        assert sampling_service.accept_reject("F", "1.0") == expected
        assert sampling_service.accept_reject("F", "1") == expected

    def test_unknown_code_letter_uses_row_a_and_sample_size_2(self):
        assert sampling_service.sample_size_for("Z") == 2
        assert sampling_service.accept_reject("Z", 6.5) == sampling_service.accept_reject("A", 6.5)

    @pytest.mark.parametrize("lot_size", [None, "abc", 0, float("nan")])
    def test_unusable_lot_size_maps_to_first_letter(self, lot_size):
        assert sampling_service.code_letter_for("II", lot_size) == "A"
        assert sampling_service.code_letter_for("III", lot_size) == "B"

    def test_unhashable_code_letter_falls_back(self):
        assert sampling_service.sample_size_for(["A"]) == 2
        assert sampling_service.accept_reject(["A"], 2.5) == AcceptReject(ac=0, re=1)
        assert sampling_service.accept_reject({"F": 1}, 6.5) == sampling_service.accept_reject("A", 6.5)

    def test_unknown_level_uses_level_ii(self):
        assert derive_plan(100, "S-1").code_letter == "F"
        assert derive_plan(100, None).code_letter == "F"
        assert derive_plan(100, "iii").code_letter == "G"


class TestDescribeTables:

    def test_shape(self):
        tables = sampling_service.describe_tables()

        assert len(tables["lot_size_ranges"]) == 15
        assert tables["lot_size_ranges"][0] == {
            "min": 2, "max": 8, "code_letters": {"I": "A", "II": "A", "III": "B"}
        }
        assert tables["lot_size_ranges"][-1]["max"] is None
        assert tables["sample_sizes"]["Q"] == 1250
        assert tables["acceptance"]["F"]["2.5"] == {"ac": 2, "re": 3}
        assert "I" not in tables["code_letters"] and "O" not in tables["code_letters"]

    def test_result_type(self):
        assert isinstance(derive_plan(50), SamplingPlanResult)
