"""Prefixed, time-ordered business IDs: order_..., pay_..., discount_..., payment_...

The numeric part is a 63-bit integer packed as

    | 41 bits ms since 2024-01-01 | 10 bits node | 12 bits sequence |

so IDs sort by creation time within a node and up to 4096 IDs can be
issued per millisecond before the generator spins to the next one.
The node number comes from ID_NODE; give each replica its own.
"""

import threading
import time

from config.settings import settings

ORDER_PREFIX = "order_"
PAYMENT_REF_PREFIX = "pay_"
DISCOUNT_PREFIX = "discount_"
PAYMENT_RECORD_PREFIX = "payment_"
CHARGE_PREFIX = "ch_"

_EPOCH_MS = 1_704_067_200_000  # 2024-01-01T00:00:00Z
_NODE_BITS = 10
_SEQ_BITS = 12
_SEQ_MASK = (1 << _SEQ_BITS) - 1


class ClockMovedBackwardsError(RuntimeError):
    pass


class IdGenerator:
    def __init__(self, node: int = 0) -> None:
        if not 0 <= node < (1 << _NODE_BITS):
            raise ValueError(f"node must be within [0, {(1 << _NODE_BITS) - 1}], got {node}")
        self._node = node
        self._seq = 0
        self._last_ms = -1
        self._mutex = threading.Lock()

    def next_int(self) -> int:
        with self._mutex:
            now = self._now_ms()
            if now < self._last_ms:
                raise ClockMovedBackwardsError(
                    f"clock moved backwards by {self._last_ms - now}ms"
                )
            if now == self._last_ms:
                self._seq = (self._seq + 1) & _SEQ_MASK
                if self._seq == 0:
                    while now <= self._last_ms:
                        now = self._now_ms()
            else:
                self._seq = 0
            self._last_ms = now
            return (
                ((now - _EPOCH_MS) << (_NODE_BITS + _SEQ_BITS))
                | (self._node << _SEQ_BITS)
                | self._seq
            )

    @staticmethod
    def _now_ms() -> int:
        return time.time_ns() // 1_000_000


_generator = IdGenerator(settings.ID_NODE)


def generate_id(prefix: str = "") -> str:
    return f"{prefix}{_generator.next_int()}"
