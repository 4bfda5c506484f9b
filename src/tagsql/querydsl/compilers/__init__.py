from .base import BaseWhere
from .condition import ConditionWhereCompiler, condition_where
from .ranking import RankingCompiler, ranking
from .tags import TagWhereCompiler, tag_where

__all__ = (
    "BaseWhere",
    "ConditionWhereCompiler",
    "condition_where",
    "TagWhereCompiler",
    "tag_where",
    "RankingCompiler",
    "ranking",
)
