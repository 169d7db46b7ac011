"""Prometheus metrics for CargoFlow.

Defines operational metrics for extraction quality, AI usage and dispatch.
"""

from prometheus_client import Counter, Histogram

# Extraction metrics
documents_extracted_total = Counter(
    "cargoflow_documents_extracted_total",
    "Total number of extraction attempts",
    ["status"]  # status: success|partial|failed|cancelled
)

extraction_duration_seconds = Histogram(
    "cargoflow_extraction_duration_seconds",
    "Time spent on one document extraction in seconds",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]
)

extraction_confidence_histogram = Histogram(
    "cargoflow_extraction_confidence",
    "Pipeline confidence score distribution",
    buckets=[0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
)

strategy_failures_total = Counter(
    "cargoflow_strategy_failures_total",
    "Strategy failures recorded during extraction",
    ["strategy", "kind"]
)

# AI call metrics
ai_calls_total = Counter(
    "cargoflow_ai_calls_total",
    "Total AI provider calls",
    ["provider", "tier", "status"]  # status: success|timeout|provider_error|schema_violation
)

ai_latency_ms = Histogram(
    "cargoflow_ai_latency_ms",
    "AI provider call latency in milliseconds",
    ["provider", "tier"],
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000]
)

ai_tokens_total = Counter(
    "cargoflow_ai_tokens_total",
    "Total AI tokens consumed",
    ["provider", "direction"]  # direction: input|output
)

ai_cost_micros_total = Counter(
    "cargoflow_ai_cost_micros_total",
    "Total AI cost in micros (1 micro = 0.000001 USD)",
    ["provider"]
)

ai_fields_dropped_total = Counter(
    "cargoflow_ai_fields_dropped_total",
    "AI fields discarded because they were outside the schema"
)

# Mapping and dispatch metrics
mapping_fallback_exhausted_total = Counter(
    "cargoflow_mapping_fallback_exhausted_total",
    "Canonical fields omitted from payload after fallback chain exhausted",
    ["target"]
)

dispatch_results_total = Counter(
    "cargoflow_dispatch_results_total",
    "Dispatch outcomes per connector",
    ["connector", "status"]  # status: success|failure
)
