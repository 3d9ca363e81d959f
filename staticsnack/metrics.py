# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

COMMITS = Counter(
    "staticsnack_commits_total",
    "Repository writes by kind (batch, asset, guest, delete) and outcome.",
    ["kind", "outcome"],
)

def record_commit(kind: str, outcome: str) -> None:
    COMMITS.labels(kind=kind, outcome=outcome).inc()

def setup_metrics(app: FastAPI, enable: bool = True):
    if not enable:
        return
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
