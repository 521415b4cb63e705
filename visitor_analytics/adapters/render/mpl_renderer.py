import hashlib
import json
from io import BytesIO
from typing import Any

import matplotlib.figure
from matplotlib.backends.backend_agg import FigureCanvasAgg

from visitor_analytics.components.analytics import AggregateResult
from visitor_analytics.ports.filestore import FileStorePort

CACHE_PREFIX = "charts"


def series_spec(result: AggregateResult) -> dict[str, Any]:
    """Chart description for a result's traffic series."""
    return {
        "title": f"Traffic ({result.timeframe.label})",
        "labels": [b.label for b in result.series],
        "views": [b.views for b in result.series],
        "visitors": [b.unique_visitors for b in result.series],
        "start": result.timeframe.start.isoformat(),
        "end": result.timeframe.end.isoformat(),
    }


class MatplotlibRenderer:
    def __init__(self, cache_store: FileStorePort):
        self.cache_store = cache_store

    def render_series(
        self, result: AggregateResult, width: int = 800, height: int = 400, dpi: int = 100
    ) -> bytes:
        """
        Render the views / unique visitors curve of one query result as PNG.

        Identical series at identical dimensions are served from the cache.
        """
        spec = series_spec(result)
        spec_str = json.dumps(spec, sort_keys=True)
        hash_input = f"{spec_str}|{width}|{height}|{dpi}"
        digest = hashlib.md5(hash_input.encode("utf-8")).hexdigest()
        cache_key = f"{CACHE_PREFIX}/{digest}.png"

        try:
            return self.cache_store.get(cache_key)
        except FileNotFoundError:
            pass

        fig = matplotlib.figure.Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        FigureCanvasAgg(fig)
        ax = fig.add_subplot(111)

        x = range(len(spec["labels"]))
        ax.plot(x, spec["views"], marker="o", label="Page views")
        ax.plot(x, spec["visitors"], marker="o", linestyle="--", label="Unique visitors")
        ax.set_xticks(list(x))
        ax.set_xticklabels(spec["labels"], rotation=45, ha="right", fontsize=8)
        ax.set_ylim(bottom=0)
        ax.set_title(spec["title"])
        ax.legend(loc="upper left")

        fig.tight_layout()

        buf = BytesIO()
        fig.savefig(buf, format="png")
        png_data = buf.getvalue()
        buf.close()

        self.cache_store.save(cache_key, png_data)

        return png_data

    def clear_cache(self) -> int:
        return self.cache_store.clear(CACHE_PREFIX)
