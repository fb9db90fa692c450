from __future__ import annotations

from reqprof.metrics import ProfileReport, RequestResult


def render_single(result: RequestResult) -> str:
    body = result.raw_response.decode("utf-8", errors="replace")
    return f"Received {result.byte_count} bytes\nResponse:\n{body}\n"


def render_profile(report: ProfileReport) -> str:
    times = " ".join(str(t) for t in report.sorted_latencies)
    codes = " ".join(report.error_codes)
    lines = [
        f"Number of requests: {report.count}",
        f"Fastest time (ms): {report.min_ms}",
        f"Slowest time (ms): {report.max_ms}",
        f"Average time (ms): {report.avg_ms:.1f}",
        f"Median  time (ms): {report.median_ms:.1f}",
        f"p95     time (ms): {report.p95_ms:.1f}",
        f"p99     time (ms): {report.p99_ms:.1f}",
        f"Times: {times}",
        f"Requests succeeded: {report.success_pct:.2f}%",
        f"Error codes: {codes}",
    ]
    if report.unknown_count:
        lines.append(f"Unparseable responses: {report.unknown_count}")
    lines.extend(
        [
            f"Smallest response: {report.min_bytes} bytes",
            f"Largest  response: {report.max_bytes} bytes",
        ]
    )
    return "\n".join(lines) + "\n"
