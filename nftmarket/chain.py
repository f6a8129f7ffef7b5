"""
Host environment for the marketplace.

The chain owns the clock that auction deadlines are compared against and the
all-or-nothing transaction scope every public entry point runs in. State
holders (the marketplace store, the asset collection, the bank) register
themselves with the chain; when a transaction fails, every registered holder
is rolled back to the snapshot taken when the transaction began.
"""

import copy
import logging
import time as _time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from eth_utils import keccak, to_checksum_address

logger = logging.getLogger(__name__)


def make_address(seed: str) -> str:
    """Deterministic checksummed address derived from ``seed``."""
    return to_checksum_address(keccak(text=seed)[-20:])


class Journaled:
    """Mixin for objects whose listed attributes are rolled back with the chain."""

    _journaled: Tuple[str, ...] = ()

    def snapshot(self) -> Dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._journaled}

    def restore(self, state: Dict[str, Any]) -> None:
        for name, value in state.items():
            setattr(self, name, copy.deepcopy(value))


class _EventItem(list):
    """All emitted events sharing one name; string keys read the first one."""

    def __getitem__(self, key):
        if isinstance(key, str):
            return list.__getitem__(self, 0)[key]
        return list.__getitem__(self, key)


@dataclass
class TransactionReceipt:
    return_value: Any = None
    events: Dict[str, _EventItem] = field(default_factory=dict)

    @classmethod
    def from_events(cls, return_value: Any, emitted: List[Tuple[str, Dict[str, Any]]]) -> 'TransactionReceipt':
        events: Dict[str, _EventItem] = {}
        for name, fields in emitted:
            events.setdefault(name, _EventItem()).append(fields)
        return cls(return_value, events)


class Chain:
    """
    In-process host for the marketplace.

    ``atomic()`` deep-copies the journaled attributes of every registered
    holder when a transaction starts, so each entry point costs time and
    memory proportional to the whole registered state. That suits tests and
    dry runs; it is not meant to hold a production-sized book.
    """

    def __init__(self, start_time: Optional[int] = None, accounts: int = 10) -> None:
        self._time = int(_time.time()) if start_time is None else start_time
        self.height = 0
        self.accounts: List[str] = [make_address(f'account-{i}') for i in range(accounts)]
        self._holders: List[Journaled] = []
        self._snapshots: List[Tuple[int, int, list]] = []
        self._event_stack: List[List[Tuple[str, Dict[str, Any]]]] = []
        self._deployments = 0

    def new_address(self, prefix: str) -> str:
        """Address for the next object deployed on this chain."""
        self._deployments += 1
        return make_address(f'{prefix}-{self._deployments}')

    def time(self) -> int:
        return self._time

    def sleep(self, seconds: int) -> None:
        self._time += seconds

    def mine(self, blocks: int = 1, timestamp: Optional[int] = None) -> int:
        if timestamp is not None:
            if timestamp < self._time:
                raise ValueError("Chain: cannot mine into the past")
            self._time = timestamp
        self.height += blocks
        return self.height

    def register(self, holder: Journaled) -> None:
        self._holders.append(holder)

    def _capture(self) -> list:
        return [(holder, holder.snapshot()) for holder in self._holders]

    @staticmethod
    def _rewind(captured: list) -> None:
        for holder, state in captured:
            holder.restore(state)

    def snapshot(self) -> int:
        """Take a snapshot of every registered holder and the clock."""
        self._snapshots.append((self._time, self.height, self._capture()))
        return len(self._snapshots)

    def revert(self) -> None:
        """Revert to the most recent snapshot; the snapshot stays available."""
        if not self._snapshots:
            raise ValueError("Chain: no snapshot to revert to")
        self._time, self.height, captured = self._snapshots[-1]
        self._rewind(captured)

    def emit(self, name: str, **fields: Any) -> None:
        if not self._event_stack:
            logger.debug(f"Event {name} emitted outside a transaction, dropped")
            return
        self._event_stack[-1].append((name, fields))

    @contextmanager
    def atomic(self) -> Iterator[List[Tuple[str, Dict[str, Any]]]]:
        """
        Run the enclosed block as one transaction.

        Yields the list collecting the events emitted inside the block. On
        any exception every registered holder is restored and the exception
        re-raised; events of a nested scope are handed to the enclosing one
        only when the nested scope succeeds.
        """
        captured = self._capture()
        events: List[Tuple[str, Dict[str, Any]]] = []
        self._event_stack.append(events)
        try:
            yield events
        except Exception as exc:
            self._rewind(captured)
            logger.warning(f"Transaction reverted: {type(exc).__name__}: {exc}")
            raise
        finally:
            self._event_stack.pop()
        if self._event_stack:
            self._event_stack[-1].extend(events)
