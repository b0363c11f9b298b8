from collections.abc import Sequence
from typing import Protocol

from linkedin_pipeline.application.ports.browser_port import BrowserPagePort
from linkedin_pipeline.domain.entities.post_record import RawRecord


class ExtractionPort(Protocol):
    """Reads records off a page already navigated to a source listing.

    Must not touch cookies or navigate away.
    """

    def extract(self, page: BrowserPagePort, max_records: int) -> Sequence[RawRecord]: ...
