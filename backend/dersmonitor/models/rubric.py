"""
評価基準（ルーブリック）の構造を定義するモデル
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from ..errors import InvalidCatalogError

RUBRIC_LEVELS = (1, 2, 3, 4, 5)
TOTAL_WEIGHT = 100


@dataclass(frozen=True)
class Criterion:
    """評価基準の情報を保持するクラス"""
    id: str
    label: str
    levels: Mapping[int, str] = field(default_factory=dict)  # レベル(1-5)ごとの記述

    def __post_init__(self):
        # レベルのキーを整数に統一し、読み取り専用にする
        levels = {int(level): text for level, text in dict(self.levels).items()}
        object.__setattr__(self, "levels", MappingProxyType(levels))

    def description_for(self, level: int) -> Optional[str]:
        """評価レベルに対応する記述を返す（未評価の場合はNone）"""
        return self.levels.get(level)


@dataclass(frozen=True)
class Section:
    """重み付きの評価カテゴリ"""
    id: str
    title: str
    weight: float  # カテゴリの重み（全カテゴリ合計で100）
    criteria: Tuple[Criterion, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "criteria", tuple(self.criteria))

    def criterion_ids(self) -> List[str]:
        return [criterion.id for criterion in self.criteria]


@dataclass(frozen=True)
class RubricCatalog:
    """
    観察フォーム全体の評価基準カタログ

    カテゴリと基準の順序は表示用であり、採点はIDをキーに行う。
    """
    sections: Tuple[Section, ...]

    def __post_init__(self):
        object.__setattr__(self, "sections", tuple(self.sections))

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections)

    def __len__(self) -> int:
        return len(self.sections)

    def criterion_ids(self) -> List[str]:
        return [criterion.id for section in self.sections for criterion in section.criteria]

    def find_criterion(self, criterion_id: str) -> Optional[Criterion]:
        for section in self.sections:
            for criterion in section.criteria:
                if criterion.id == criterion_id:
                    return criterion
        return None

    def section_of(self, criterion_id: str) -> Optional[Section]:
        for section in self.sections:
            if criterion_id in section.criterion_ids():
                return section
        return None

    def validate(self) -> "RubricCatalog":
        """
        カタログの不変条件を検証する

        - カテゴリIDが一意であること
        - 基準IDがカタログ全体で一意であること
        - 各基準がレベル1〜5の記述をすべて持つこと
        - 各カテゴリの重みが0〜100で、合計が100であること

        Returns:
            RubricCatalog: 検証済みのカタログ（自分自身）

        Raises:
            InvalidCatalogError: 不変条件に違反している場合
        """
        if not self.sections:
            raise InvalidCatalogError("評価カテゴリが定義されていません")

        section_ids = [section.id for section in self.sections]
        duplicated_sections = sorted({sid for sid in section_ids if section_ids.count(sid) > 1})
        if duplicated_sections:
            raise InvalidCatalogError(
                "カテゴリIDが重複しています",
                details=", ".join(duplicated_sections),
            )

        criterion_ids = self.criterion_ids()
        duplicated_criteria = sorted({cid for cid in criterion_ids if criterion_ids.count(cid) > 1})
        if duplicated_criteria:
            raise InvalidCatalogError(
                "評価基準IDが重複しています",
                details=", ".join(duplicated_criteria),
            )

        for section in self.sections:
            if not 0 <= section.weight <= TOTAL_WEIGHT:
                raise InvalidCatalogError(
                    f"カテゴリ {section.id} の重みが範囲外です: {section.weight}"
                )
            for criterion in section.criteria:
                if sorted(criterion.levels) != list(RUBRIC_LEVELS):
                    raise InvalidCatalogError(
                        f"評価基準 {criterion.id} のレベル記述が不完全です",
                        details=f"定義済みレベル: {sorted(criterion.levels)}",
                    )

        total_weight = sum(section.weight for section in self.sections)
        if abs(total_weight - TOTAL_WEIGHT) > 1e-9:
            raise InvalidCatalogError(
                f"カテゴリの重みの合計が{TOTAL_WEIGHT}ではありません: {total_weight}"
            )
        return self

    @classmethod
    def from_dict(cls, data: Dict) -> "RubricCatalog":
        """辞書形式（JSON）からカタログを生成する"""
        try:
            sections = [
                Section(
                    id=str(section["id"]),
                    title=section["title"],
                    weight=section["weight"],
                    criteria=tuple(
                        Criterion(
                            id=str(criterion["id"]),
                            label=criterion["label"],
                            levels=criterion["levels"],
                        )
                        for criterion in section.get("criteria", [])
                    ),
                )
                for section in data["sections"]
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidCatalogError(
                "カタログの形式が不正です",
                details=f"{type(e).__name__}: {e}",
            ) from e
        return cls(sections=tuple(sections))
