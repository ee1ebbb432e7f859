"""HackerOne inbox plugin package – fetcher, normalizer, sink.

The public interface that *pipeline_orchestrator* discovers is the
three classes below:

* :class:`InboxTimelineFetcher` – lists an inbox's reports and fetches their timelines
* :class:`ActivityNormalizer`   – filters noisy activity types, relabels comments
* :class:`CsvExportSink`        – writes the export CSV once the stream ends

so that YAML can reference a short path such as:

```yaml
- class: "hackerone.InboxTimelineFetcher"
```

:func:`handle_message` runs the same chain for a single trigger message.
"""

from .fetcher import InboxTimelineFetcher  # noqa: F401
from .parser import ActivityNormalizer     # noqa: F401
from .sinks import CsvExportSink           # noqa: F401
from .handler import handle_message, run_scrape  # noqa: F401
