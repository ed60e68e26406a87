from typing import Iterator, Protocol

from housekeeper.domain.models import Change


class Keep(Protocol):
    def each_change(self) -> Iterator[Change]:
        """Lazily scan the repository and yield one Change per proposed fix.

        The iterator is finite and not restartable; callers may stop consuming
        it at any point.
        """
