"""
Sampling Service - ISO 2859-1 / ANSI/ASQ Z1.4
Derives single sampling plans (sample size + Accept/Reject numbers) from
lot size, inspection level and the major/minor AQL targets.

Implementation Status:
- Table 1 (Sample Size Code Letters, Levels I / II / III): COMPLETE
- Table 2-A (Single Sampling, Normal Inspection), AQL 0.65 - 6.5: COMPLETE
- Special Levels S-1 to S-4: NOT SUPPORTED
- Switching Rules (Tightened / Reduced): NOT SUPPORTED
"""
import logging
import math
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Union

from models.schemas import AcceptReject, InspectionLevel, SamplingPlanResult

logger = logging.getLogger(__name__)


def _freeze(table: Dict[str, Dict[float, tuple]]) -> MappingProxyType:
    return MappingProxyType({
        letter: MappingProxyType(dict(row)) for letter, row in table.items()
    })


class SamplingService:
    """
    Read-only lookup tables plus the pure plan derivation built on them.
    """

    # ---------------------------------------------------------
    # 1. CONSTANTS & REFERENCE TABLES
    # ---------------------------------------------------------

    # Code letter alphabet (I and O are not used by the standard)
    CODE_LETTERS = ('A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'J', 'K', 'L', 'M', 'N', 'P', 'Q')

    # Table 1 - inclusive lot size upper bounds; the last range is open ended
    LOT_SIZE_LIMITS = (
        8, 15, 25, 50, 90, 150, 280, 500, 1200, 3200,
        10000, 35000, 150000, 500000, float('inf'),
    )

    # Table 1 - code letter per lot size range, aligned with LOT_SIZE_LIMITS
    LEVEL_CODE_LETTERS = MappingProxyType({
        InspectionLevel.I: ('A', 'A', 'B', 'C', 'C', 'D', 'E', 'F', 'G', 'H', 'J', 'K', 'L', 'M', 'N'),
        InspectionLevel.II: ('A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'J', 'K', 'L', 'M', 'N', 'P', 'Q'),
        InspectionLevel.III: ('B', 'C', 'D', 'E', 'F', 'G', 'H', 'J', 'K', 'L', 'M', 'N', 'P', 'Q', 'Q'),
    })

    # Code Letter -> Sample Size (Table 2-A)
    SAMPLE_SIZE_MAP = MappingProxyType({
        'A': 2, 'B': 3, 'C': 5, 'D': 8, 'E': 13,
        'F': 20, 'G': 32, 'H': 50, 'J': 80, 'K': 125,
        'L': 200, 'M': 315, 'N': 500, 'P': 800, 'Q': 1250,
    })

    DEFAULT_SAMPLE_SIZE = 2
    DEFAULT_LEVEL = InspectionLevel.II

    # AQL columns carried by the abbreviated Table 2-A
    VALID_AQLS = (0.65, 1.0, 1.5, 2.5, 4.0, 6.5)

    # Zero-tolerance plan used whenever a cell is missing
    STRICTEST = (0, 1)

    # Table 2-A (abbreviated): Letter -> {AQL: (Ac, Re)}
    # Arrow cells are resolved to the adjacent plan's Ac/Re; large
    # letters cap at 21/22.
    TABLE_2A = _freeze({
        'A': {0.65: (0, 1), 1.0: (0, 1), 1.5: (0, 1), 2.5: (0, 1), 4.0: (0, 1), 6.5: (0, 1)},
        'B': {0.65: (0, 1), 1.0: (0, 1), 1.5: (0, 1), 2.5: (0, 1), 4.0: (0, 1), 6.5: (1, 2)},
        'C': {0.65: (0, 1), 1.0: (0, 1), 1.5: (0, 1), 2.5: (0, 1), 4.0: (1, 2), 6.5: (1, 2)},
        'D': {0.65: (0, 1), 1.0: (0, 1), 1.5: (0, 1), 2.5: (1, 2), 4.0: (1, 2), 6.5: (2, 3)},
        'E': {0.65: (0, 1), 1.0: (0, 1), 1.5: (1, 2), 2.5: (1, 2), 4.0: (2, 3), 6.5: (3, 4)},
        'F': {0.65: (0, 1), 1.0: (1, 2), 1.5: (1, 2), 2.5: (2, 3), 4.0: (3, 4), 6.5: (5, 6)},
        'G': {0.65: (1, 2), 1.0: (1, 2), 1.5: (2, 3), 2.5: (3, 4), 4.0: (5, 6), 6.5: (7, 8)},
        'H': {0.65: (1, 2), 1.0: (2, 3), 1.5: (3, 4), 2.5: (5, 6), 4.0: (7, 8), 6.5: (10, 11)},
        'J': {0.65: (2, 3), 1.0: (3, 4), 1.5: (5, 6), 2.5: (7, 8), 4.0: (10, 11), 6.5: (14, 15)},
        'K': {0.65: (3, 4), 1.0: (5, 6), 1.5: (7, 8), 2.5: (10, 11), 4.0: (14, 15), 6.5: (21, 22)},
        'L': {0.65: (5, 6), 1.0: (7, 8), 1.5: (10, 11), 2.5: (14, 15), 4.0: (21, 22), 6.5: (21, 22)},
        'M': {0.65: (7, 8), 1.0: (10, 11), 1.5: (14, 15), 2.5: (21, 22), 4.0: (21, 22), 6.5: (21, 22)},
        'N': {0.65: (10, 11), 1.0: (14, 15), 1.5: (21, 22), 2.5: (21, 22), 4.0: (21, 22), 6.5: (21, 22)},
        'P': {0.65: (14, 15), 1.0: (21, 22), 1.5: (21, 22), 2.5: (21, 22), 4.0: (21, 22), 6.5: (21, 22)},
        'Q': {0.65: (21, 22), 1.0: (21, 22), 1.5: (21, 22), 2.5: (21, 22), 4.0: (21, 22), 6.5: (21, 22)},
    })

    # ---------------------------------------------------------
    # 2. HELPER METHODS
    # ---------------------------------------------------------

    def _normalize_level(self, level: Any) -> InspectionLevel:
        """Accepts enum members or their string values ('I', 'II', 'III')."""
        if isinstance(level, InspectionLevel):
            return level
        try:
            return InspectionLevel(str(level).strip().upper())
        except ValueError:
            if level not in (None, ""):
                logger.warning(f"Unknown inspection level {level!r}, using Level {self.DEFAULT_LEVEL.value}")
            return self.DEFAULT_LEVEL

    def _normalize_aql(self, aql: Any) -> Optional[float]:
        """Maps '2.5', 1 and 1.0 onto the float keys of TABLE_2A."""
        if aql is None or isinstance(aql, bool):
            return None
        try:
            value = float(aql)
        except (TypeError, ValueError, OverflowError):
            return None
        if not math.isfinite(value):
            return None
        return round(value, 3)

    def _coerce_lot_size(self, lot_size: Any) -> Optional[Union[int, float]]:
        """Returns a positive finite lot size, or None when there is nothing to plan for."""
        if lot_size is None or isinstance(lot_size, bool):
            return None
        # ints stay exact; comparing them with the float limits cannot overflow
        if isinstance(lot_size, int):
            return lot_size if lot_size > 0 else None
        if isinstance(lot_size, str):
            lot_size = lot_size.strip()
            if not lot_size:
                return None
            try:
                value = int(lot_size)
                return value if value > 0 else None
            except ValueError:
                pass
        try:
            value = float(lot_size)
        except (TypeError, ValueError, OverflowError):
            return None
        if not math.isfinite(value) or value <= 0:
            return None
        return value

    def lot_size_index(self, lot_size: float) -> int:
        """Index of the first range whose upper bound is >= lot_size."""
        for index, limit in enumerate(self.LOT_SIZE_LIMITS):
            if lot_size <= limit:
                return index
        # Unreachable while the last limit is infinite
        return len(self.LOT_SIZE_LIMITS) - 1

    # ---------------------------------------------------------
    # 3. LOOKUP ACCESSORS
    # ---------------------------------------------------------

    def code_letter_for(self, level: Any, lot_size: Any) -> str:
        letters = self.LEVEL_CODE_LETTERS[self._normalize_level(level)]
        lot = self._coerce_lot_size(lot_size)
        index = 0 if lot is None else min(self.lot_size_index(lot), len(letters) - 1)
        return letters[index]

    def sample_size_for(self, code_letter: Any) -> int:
        sample_size = self.SAMPLE_SIZE_MAP.get(code_letter) if isinstance(code_letter, str) else None
        if sample_size is None:
            logger.warning(f"No sample size for code letter {code_letter!r}, using {self.DEFAULT_SAMPLE_SIZE}")
            return self.DEFAULT_SAMPLE_SIZE
        return sample_size

    def accept_reject(self, code_letter: Any, aql: Any) -> AcceptReject:
        row = self.TABLE_2A.get(code_letter) if isinstance(code_letter, str) else None
        if row is None:
            logger.warning(f"No acceptance row for code letter {code_letter!r}, using row 'A'")
            row = self.TABLE_2A['A']

        cell = row.get(self._normalize_aql(aql))
        if cell is None:
            logger.debug(f"AQL {aql!r} not in table for code {code_letter}; using strictest plan")
            cell = self.STRICTEST

        ac, re = cell
        return AcceptReject(ac=ac, re=re)

    # ---------------------------------------------------------
    # 4. PUBLIC API
    # ---------------------------------------------------------

    def derive_plan(
        self,
        lot_size: Any,
        level: Any = InspectionLevel.II,
        major_aql: Any = 2.5,
        minor_aql: Any = 4.0
    ) -> Optional[SamplingPlanResult]:
        """
        Calculates the single sampling plan for a lot.

        Args:
            lot_size: Total quantity in the lot.
            level: Inspection level (I, II, III).
            major_aql: AQL for major defects.
            minor_aql: AQL for minor defects.

        Returns:
            SamplingPlanResult, or None when the lot size is missing,
            non-numeric or not positive.
        """
        lot = self._coerce_lot_size(lot_size)
        if lot is None:
            return None

        code_letter = self.code_letter_for(level, lot)
        return SamplingPlanResult(
            sample_size=self.sample_size_for(code_letter),
            code_letter=code_letter,
            major=self.accept_reject(code_letter, major_aql),
            minor=self.accept_reject(code_letter, minor_aql),
        )

    def calculate_sample_size(self, lot_size: Any, level: Any = InspectionLevel.II) -> Optional[int]:
        """
        Returns just the required sample size integer.
        Convenience wrapper around derive_plan.
        """
        plan = self.derive_plan(lot_size, level)
        return plan.sample_size if plan else None

    def verify_tables(self) -> List[str]:
        """Integrity check of the reference tables. Returns a list of problems."""
        problems = []
        limits = self.LOT_SIZE_LIMITS

        if len(limits) != 15:
            problems.append(f"Expected 15 lot size ranges, found {len(limits)}")
        if any(a >= b for a, b in zip(limits, limits[1:])):
            problems.append("Lot size limits are not strictly ascending")
        if limits[-1] != float('inf'):
            problems.append("Last lot size range is not open ended")

        for level in InspectionLevel:
            letters = self.LEVEL_CODE_LETTERS.get(level)
            if letters is None:
                problems.append(f"Level {level.value} has no code letters")
                continue
            if len(letters) != len(limits):
                problems.append(f"Level {level.value} has {len(letters)} code letters for {len(limits)} ranges")
            unknown = [c for c in letters if c not in self.CODE_LETTERS]
            if unknown:
                problems.append(f"Level {level.value} uses unknown code letters {unknown}")
                continue
            positions = [self.CODE_LETTERS.index(c) for c in letters]
            if positions != sorted(positions):
                problems.append(f"Level {level.value} code letters decrease with lot size")

        # Tighter levels never pick a smaller code letter
        ordered = [self.LEVEL_CODE_LETTERS.get(level, ()) for level in InspectionLevel]
        for lower, higher in zip(ordered, ordered[1:]):
            for a, b in zip(lower, higher):
                if a in self.CODE_LETTERS and b in self.CODE_LETTERS \
                        and self.CODE_LETTERS.index(b) < self.CODE_LETTERS.index(a):
                    problems.append(f"Code letter {b} is below {a} for a tighter level")

        for letter in self.CODE_LETTERS:
            size = self.SAMPLE_SIZE_MAP.get(letter)
            if size is None or size < 2:
                problems.append(f"Invalid sample size for code letter {letter}: {size}")

            row = self.TABLE_2A.get(letter)
            if row is None:
                problems.append(f"Missing acceptance row for code letter {letter}")
                continue
            for aql in self.VALID_AQLS:
                cell = row.get(aql)
                if cell is None:
                    problems.append(f"Missing Ac/Re for {letter} @ AQL {aql}")
                elif cell[0] < 0 or cell[1] != cell[0] + 1:
                    problems.append(f"Ac/Re {cell} for {letter} @ AQL {aql} breaks Re = Ac + 1")

        return problems

    def describe_tables(self) -> Dict[str, Any]:
        """JSON-ready copy of every reference table."""
        return {
            "code_letters": list(self.CODE_LETTERS),
            "lot_size_ranges": [
                {
                    "min": 2 if i == 0 else int(self.LOT_SIZE_LIMITS[i - 1]) + 1,
                    "max": None if limit == float('inf') else int(limit),
                    "code_letters": {
                        level.value: self.LEVEL_CODE_LETTERS[level][i] for level in InspectionLevel
                    },
                }
                for i, limit in enumerate(self.LOT_SIZE_LIMITS)
            ],
            "sample_sizes": dict(self.SAMPLE_SIZE_MAP),
            "aqls": list(self.VALID_AQLS),
            "acceptance": {
                letter: {str(aql): {"ac": ac, "re": re} for aql, (ac, re) in row.items()}
                for letter, row in self.TABLE_2A.items()
            },
        }


# Singleton instance
sampling_service = SamplingService()


def derive_plan(
    lot_size: Any,
    level: Any = InspectionLevel.II,
    major_aql: Any = 2.5,
    minor_aql: Any = 4.0
) -> Optional[SamplingPlanResult]:
    """Module-level entry point; see SamplingService.derive_plan."""
    return sampling_service.derive_plan(lot_size, level, major_aql, minor_aql)
