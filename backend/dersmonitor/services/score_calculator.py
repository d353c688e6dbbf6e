"""
スコア計算を管理するサービス
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Mapping

from ..errors import InvalidRatingError
from ..models.analysis_result import ScoringResult
from ..models.rubric import RubricCatalog, Section

logger = logging.getLogger(__name__)


def round_half_up(value: Decimal) -> int:
    """四捨五入（0.5は常に切り上げ）"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ScoreCalculator:
    def __init__(self):
        self.MAX_SCORE = 100
        self.MIN_SCORE = 0
        self.MAX_RATING = 5
        self.UNRATED = 0

    def validate_ratings(self, ratings: Mapping[str, int], catalog: RubricCatalog) -> None:
        """
        評価値を検証する

        Args:
            ratings: 評価基準IDごとの評価値（0は未評価）
            catalog: 評価基準カタログ

        Raises:
            InvalidRatingError: 未知の評価基準ID、または0〜5以外の評価値
        """
        known_ids = set(catalog.criterion_ids())
        for criterion_id, rating in ratings.items():
            if criterion_id not in known_ids:
                raise InvalidRatingError(
                    f"評価基準 {criterion_id} はカタログに存在しません",
                    criterion_id=criterion_id,
                )
            # boolはintのサブクラスなので明示的に除外する
            if isinstance(rating, bool) or not isinstance(rating, int):
                raise InvalidRatingError(
                    f"評価基準 {criterion_id} の評価値は整数である必要があります: {rating!r}",
                    criterion_id=criterion_id,
                )
            if not self.UNRATED <= rating <= self.MAX_RATING:
                raise InvalidRatingError(
                    f"評価基準 {criterion_id} の評価値が範囲外です: {rating}",
                    criterion_id=criterion_id,
                    details=f"評価値は{self.UNRATED}〜{self.MAX_RATING}である必要があります",
                )

    def count_rated(self, ratings: Mapping[str, int]) -> int:
        """評価済み（1以上）の基準数を数える"""
        return sum(1 for rating in ratings.values() if rating > self.UNRATED)

    def calculate_category_score(self, section: Section, ratings: Mapping[str, int]) -> int:
        """
        カテゴリのスコアを計算

        未評価の基準は平均から除外する。評価済みの基準がない場合は0点。

        Returns:
            正規化されたスコア（0-100）
        """
        rated = [
            ratings[criterion_id]
            for criterion_id in section.criterion_ids()
            if ratings.get(criterion_id, self.UNRATED) > self.UNRATED
        ]
        if not rated:
            return self.MIN_SCORE

        normalized = Decimal(self.MAX_SCORE * sum(rated)) / Decimal(self.MAX_RATING * len(rated))
        return round_half_up(normalized)

    def calculate_category_scores(
        self,
        ratings: Mapping[str, int],
        catalog: RubricCatalog
    ) -> Dict[str, int]:
        """
        カテゴリごとのスコアを計算

        Returns:
            カテゴリIDごとのスコア（カタログの順序）
        """
        category_scores = {}
        for section in catalog:
            category_scores[section.id] = self.calculate_category_score(section, ratings)
            logger.debug(f"カテゴリ: {section.id}, 重み: {section.weight}, スコア: {category_scores[section.id]}")
        return category_scores

    def calculate_total_score(self, category_scores: Mapping[str, int], catalog: RubricCatalog) -> int:
        """
        総合スコアを計算

        丸め済みのカテゴリスコアに重みを掛けて合計し、最後にもう一度丸める。
        評価のないカテゴリも 0 × 重み として合計に含める。

        Returns:
            総合スコア（0-100）
        """
        weighted_sum = sum(
            (
                Decimal(category_scores.get(section.id, self.MIN_SCORE)) * Decimal(str(section.weight))
                for section in catalog
            ),
            Decimal(0),
        )
        return round_half_up(weighted_sum / Decimal(self.MAX_SCORE))

    def score(self, ratings: Mapping[str, int], catalog: RubricCatalog) -> ScoringResult:
        """
        評価値からカテゴリスコアと総合スコアを計算する

        評価済みの基準数が少なくてもエラーにはしない（提出可否は呼び出し側の判断）。

        Args:
            ratings: 評価基準IDごとの評価値（0は未評価）
            catalog: 評価基準カタログ

        Returns:
            ScoringResult: 採点結果

        Raises:
            InvalidRatingError: 評価値が不正な場合
        """
        self.validate_ratings(ratings, catalog)
        category_scores = self.calculate_category_scores(ratings, catalog)
        overall_score = self.calculate_total_score(category_scores, catalog)
        logger.info(f"採点完了: 総合スコア={overall_score}, 評価済み基準数={self.count_rated(ratings)}")
        return ScoringResult(overall_score=overall_score, category_scores=category_scores)


def score(ratings: Mapping[str, int], catalog: RubricCatalog) -> ScoringResult:
    """評価値を採点する（ScoreCalculator.score のショートカット）"""
    return ScoreCalculator().score(ratings, catalog)
