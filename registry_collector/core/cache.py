"""
Кэш результатов по stage.

Одно вычисление на ключ: параллельные запросы одного stage ждут первое
вычисление и получают его результат, разные stage'и друг друга не блокируют.

Пример использования:
    cache = StageCache()
    services = cache.get_or_compute("qa", lambda: load_services("qa"))

    cache.invalidate("qa")   # следующий запрос qa вычислит заново
    cache.invalidate()       # сбросить всё
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Set, TypeVar

from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    """Опубликованное значение и время его вычисления."""
    value: T
    computed_at: float


class NotCached(Exception):
    """
    Сигнал из compute: вернуть значение, но не сохранять его в кэш.

    Attributes:
        value: Значение для вызывающего
    """

    def __init__(self, value):
        self.value = value
        super().__init__("value is not cached")


class _KeyLock:
    """
    Lock вычисления одного stage.

    users: сколько потоков сейчас держат или ждут lock
    generation: увеличивается при invalidate во время вычисления
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0
        self.generation = 0


class StageCache(Generic[T]):
    """
    Потокобезопасный кэш get-or-compute по ключу stage.

    Значение публикуется только после успешного compute. Исключение из
    compute не кэшируется: следующий вызов повторит вычисление.
    Если stage сброшен через invalidate во время compute, результат
    возвращается вызывающему, но не публикуется.

    Lock ключа живёт, пока им пользуется хотя бы один поток.

    Attributes:
        ttl: Время жизни записи в секундах (None - без истечения)
    """

    def __init__(
        self,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, _Entry[T]] = {}
        # Защищает только _entries и _key_locks, compute под ним не выполняется
        self._lock = threading.Lock()
        self._key_locks: Dict[str, _KeyLock] = {}

    def _acquire_key_lock(self, stage: str) -> _KeyLock:
        with self._lock:
            key_lock = self._key_locks.get(stage)
            if key_lock is None:
                key_lock = self._key_locks[stage] = _KeyLock()
            key_lock.users += 1
            return key_lock

    def _release_key_lock(self, stage: str, key_lock: _KeyLock) -> None:
        with self._lock:
            key_lock.users -= 1
            if key_lock.users == 0 and self._key_locks.get(stage) is key_lock:
                del self._key_locks[stage]

    def _get_fresh(self, stage: str) -> Optional[_Entry[T]]:
        with self._lock:
            entry = self._entries.get(stage)
            if entry is None:
                return None
            if self.ttl is not None and self._clock() - entry.computed_at >= self.ttl:
                del self._entries[stage]
                return None
            return entry

    def get_or_compute(self, stage: str, compute: Callable[[], T]) -> T:
        """
        Возвращает значение из кэша или вычисляет его.

        compute может выбросить NotCached(value): value вернётся
        вызывающему, но в кэш не попадёт.

        Args:
            stage: Ключ
            compute: Функция вычисления значения

        Returns:
            Значение для stage
        """
        entry = self._get_fresh(stage)
        if entry is not None:
            logger.debug("Cache hit", stage=stage)
            return entry.value

        key_lock = self._acquire_key_lock(stage)
        try:
            with key_lock.lock:
                # Пока ждали lock, значение мог вычислить другой поток
                entry = self._get_fresh(stage)
                if entry is not None:
                    logger.debug("Cache hit after wait", stage=stage)
                    return entry.value

                with self._lock:
                    generation = key_lock.generation

                try:
                    value = compute()
                except NotCached as signal:
                    return signal.value

                with self._lock:
                    if key_lock.generation != generation:
                        logger.debug("Stage invalidated during computation, result not cached", stage=stage)
                        return value
                    self._entries[stage] = _Entry(value=value, computed_at=self._clock())
                return value
        finally:
            self._release_key_lock(stage, key_lock)

    def invalidate(self, stage: Optional[str] = None) -> None:
        """
        Удаляет запись stage (или все записи, если stage не указан).

        Вычисление, идущее в этот момент, свой результат не опубликует.
        """
        with self._lock:
            if stage is None:
                self._entries.clear()
                key_locks = list(self._key_locks.values())
            else:
                self._entries.pop(stage, None)
                key_locks = [self._key_locks[stage]] if stage in self._key_locks else []
            for key_lock in key_locks:
                key_lock.generation += 1

    def stages(self) -> Set[str]:
        """Stage'и, для которых есть значение в кэше."""
        with self._lock:
            return set(self._entries)

    def __contains__(self, stage: object) -> bool:
        return self._get_fresh(stage) is not None if isinstance(stage, str) else False
