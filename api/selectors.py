"""
Выбор кандидатов в ревьюверы.

Единственное место в сервисе, где используется случайность. Источник
случайности передается в конструктор, поэтому в тестах его можно
заменить на детерминированный.
"""
import random
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence


def eligible_pool(members: Iterable, exclude_ids: Iterable[int] = ()) -> list:
    """
    Активные участники команды, кроме исключенных

    Args:
        members: Участники команды
        exclude_ids: Суррогатные id пользователей, которых нельзя выбирать

    Returns:
        list: Пул кандидатов
    """
    excluded = set(exclude_ids)
    return [user for user in members if user.is_active and user.pk not in excluded]


class CandidateSelector(ABC):
    """
    Базовый селектор: выбирает count кандидатов из пула
    """

    @abstractmethod
    def select(self, pool: Sequence, count: int) -> list:
        """Не более count кандидатов без повторов"""


class RandomCandidateSelector(CandidateSelector):
    """
    Равномерный случайный выбор без повторов (перемешивание Фишера-Йетса)
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select(self, pool: Sequence, count: int) -> list:
        if count <= 0 or not pool:
            return []

        if count >= len(pool):
            return list(pool)

        shuffled = list(pool)
        for i in range(len(shuffled) - 1, 0, -1):
            j = self._rng.randint(0, i)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

        return shuffled[:count]


def select_random(pool: Sequence, count: int, rng: Optional[random.Random] = None) -> list:
    return RandomCandidateSelector(rng).select(pool, count)
