"""
Prometheus text exposition parser. Handles the parts a scrape provider
needs: counters, gauges, histograms and *_info families. No external deps.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from snapdelta.distribution import Histogram


@dataclass
class MetricSample:
    name: str
    labels: Dict[str, str]
    value: float


@dataclass
class MetricFamily:
    name: str
    metric_type: str  # "gauge", "counter", "histogram", "summary", "info", "untyped"
    help_text: str
    samples: List[MetricSample] = field(default_factory=list)


# key="value" pairs inside braces; values may contain escaped quotes
_LABEL_RE = re.compile(r'(\w+)="((?:[^"\\]|\\.)*)"')

_SUFFIXES = ("_total", "_bucket", "_sum", "_count", "_created")

# Labels that describe the series shape rather than identify it
_STRUCTURAL_LABELS = {"le", "quantile"}


def parse_labels(label_str: str) -> Dict[str, str]:
    if not label_str:
        return {}
    return {
        key: value.replace('\\"', '"').replace("\\n", "\n").replace("\\\\", "\\")
        for key, value in _LABEL_RE.findall(label_str)
    }


def _family_of(name: str, types: Dict[str, str]) -> Tuple[str, str]:
    """Map a sample name to (family name, family type)."""
    if name.endswith("_info"):
        return name, "info"
    if types.get(name) == "gauge":
        return name, "gauge"
    base = name
    for suffix in _SUFFIXES:
        if name.endswith(suffix):
            base = name[: -len(suffix)]
            break
    return base, types.get(base) or types.get(name, "untyped")


def parse_prometheus_text(text: str) -> Dict[str, MetricFamily]:
    """Returns a dict keyed by family name (strips _total, _bucket, etc)."""
    families: Dict[str, MetricFamily] = {}
    current_type: Dict[str, str] = {}
    current_help: Dict[str, str] = {}

    for line in text.strip().split("\n"):
        line = line.strip()

        if not line:
            continue

        if line.startswith("# HELP "):
            parts = line[7:].split(" ", 1)
            if len(parts) == 2:
                current_help[parts[0]] = parts[1]
            continue

        if line.startswith("# TYPE "):
            parts = line[7:].split(" ", 1)
            if len(parts) == 2:
                current_type[parts[0]] = parts[1].strip()
            continue

        if line.startswith("#"):
            continue

        # name{labels} value [timestamp]  or  name value [timestamp]
        brace_start = line.find("{")
        if brace_start != -1:
            name = line[:brace_start]
            brace_end = line.rfind("}")
            if brace_end < brace_start:
                continue
            label_str = line[brace_start + 1:brace_end]
            rest = line[brace_end + 1:].split()
            if not rest:
                continue
            value_str = rest[0]
        else:
            parts = line.split()
            if len(parts) < 2:
                continue
            name = parts[0]
            label_str = ""
            value_str = parts[1]

        try:
            value = float(value_str)
        except ValueError:
            continue

        base_name, metric_type = _family_of(name, current_type)
        if base_name not in families:
            families[base_name] = MetricFamily(
                name=base_name,
                metric_type=metric_type,
                help_text=current_help.get(base_name) or current_help.get(name, ""),
            )

        families[base_name].samples.append(
            MetricSample(name=name, labels=parse_labels(label_str), value=value)
        )

    return families


def series_key(name: str, labels: Dict[str, str]) -> str:
    """Stable name for one labelled series, e.g. http_requests{code="200"}."""
    identity = {k: v for k, v in labels.items() if k not in _STRUCTURAL_LABELS}
    if not identity:
        return name
    inner = ",".join(f'{k}="{identity[k]}"' for k in sorted(identity))
    return f"{name}{{{inner}}}"


def flat_series(family: MetricFamily) -> Dict[str, float]:
    """Every series of a single-valued family (counter, gauge), keyed by series_key()."""
    series: Dict[str, float] = {}
    for sample in family.samples:
        if sample.name.endswith("_created"):
            continue
        series[series_key(family.name, sample.labels)] = sample.value
    return series


def histogram_series(family: MetricFamily) -> Dict[str, Histogram]:
    """Rebuild every series of a histogram family as a Histogram."""
    buckets: Dict[str, List[Tuple[float, float]]] = {}
    sums: Dict[str, float] = {}
    counts: Dict[str, float] = {}

    for sample in family.samples:
        key = series_key(family.name, sample.labels)
        if sample.name.endswith("_bucket"):
            le = sample.labels.get("le")
            if le is None:
                continue
            if le == "+Inf":
                counts.setdefault(key, sample.value)
                continue
            try:
                buckets.setdefault(key, []).append((float(le), sample.value))
            except ValueError:
                continue
        elif sample.name.endswith("_sum"):
            sums[key] = sample.value
        elif sample.name.endswith("_count"):
            counts[key] = sample.value

    # a series may expose only le="+Inf"; that is a histogram with no finite bounds
    result: Dict[str, Histogram] = {}
    for key in set(buckets) | set(counts):
        bucket_list = buckets.get(key, [])
        total_count = counts.get(key)
        if total_count is None:
            total_count = max(v for _, v in bucket_list)
        result[key] = Histogram.from_cumulative(bucket_list, sums.get(key, 0.0), total_count)
    return result
