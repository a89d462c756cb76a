"""Structured outputs of a verdict: JUnit XML and JSON."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
import xml.etree.ElementTree as ET
from typing import Any, Dict, Union

from jsonschema import validate

from .verdict import Verdict

SCHEMA_VERSION = "1.1.0"
CONSISTENCY_CASE = "report consistency"

REPORT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "pagetest verdict",
    "type": "object",
    "required": ["schema_version", "generated_at", "source", "summary", "tests"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "source": {"type": "string"},
        "summary": {
            "type": "object",
            "required": ["total", "passed", "failed", "ok", "synthetic", "timed_out"],
            "properties": {
                "total": {"type": "integer", "minimum": 0},
                "passed": {"type": "integer", "minimum": 0},
                "failed": {"type": "integer", "minimum": 0},
                "ok": {"type": "boolean"},
                "synthetic": {"type": "boolean"},
                "timed_out": {"type": "boolean"},
            },
        },
        "warnings": {"type": "array", "items": {"type": "string"}},
        "inconsistencies": {"type": "array", "items": {"type": "string"}},
        "notices": {"type": "array", "items": {"type": "string"}},
        "tests": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "status"],
                "properties": {
                    "name": {"type": "string"},
                    "status": {"enum": ["passed", "failed"]},
                    "error": {"type": "string"},
                    "details": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
}


def build_json_report(verdict: Verdict) -> Dict[str, Any]:
    tests = []
    for record in verdict.records:
        entry: Dict[str, Any] = {"name": record.name, "status": record.status}
        if record.error:
            entry["error"] = record.error
        if record.details:
            entry["details"] = list(record.details)
        tests.append(entry)
    payload = {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "source": verdict.source,
        "summary": {
            "total": verdict.total,
            "passed": verdict.passed,
            "failed": verdict.failed,
            "ok": verdict.ok,
            "synthetic": verdict.synthetic,
            "timed_out": verdict.timed_out,
        },
        "warnings": list(verdict.warnings),
        "inconsistencies": list(verdict.inconsistencies),
        "notices": list(verdict.notices),
        "tests": tests,
    }
    validate(instance=payload, schema=REPORT_SCHEMA)
    return payload


def write_json_report(verdict: Verdict, path: Union[str, pathlib.Path]) -> pathlib.Path:
    target = pathlib.Path(path)
    payload = build_json_report(verdict)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem protection
        raise RuntimeError(f"Failed to write JSON report to {target}: {exc}") from exc
    return target


def build_junit(verdict: Verdict, suite_name: str = "pagetest") -> ET.Element:
    extra = 1 if verdict.inconsistencies else 0
    suite = ET.Element(
        "testsuite",
        {
            "name": suite_name,
            "tests": str(verdict.total + extra),
            "failures": str(verdict.failed + extra),
            "errors": "0",
            "skipped": "0",
        },
    )
    if verdict.source:
        properties = ET.SubElement(suite, "properties")
        ET.SubElement(properties, "property", {"name": "source", "value": verdict.source})
    for record in verdict.records:
        case = ET.SubElement(suite, "testcase", {"classname": suite_name, "name": record.name})
        if not record.passed:
            failure = ET.SubElement(case, "failure", {"message": record.error or "Unknown error"})
            if record.details:
                failure.text = "\n".join(record.details)
    if verdict.inconsistencies:
        case = ET.SubElement(suite, "testcase", {"classname": suite_name, "name": CONSISTENCY_CASE})
        failure = ET.SubElement(case, "failure", {"message": verdict.inconsistencies[0]})
        failure.text = "\n".join(verdict.inconsistencies)
    if verdict.warnings:
        system_out = ET.SubElement(suite, "system-out")
        system_out.text = "\n".join(verdict.warnings)
    return suite


def write_junit(verdict: Verdict, path: Union[str, pathlib.Path], suite_name: str = "pagetest") -> pathlib.Path:
    target = pathlib.Path(path)
    tree = ET.ElementTree(build_junit(verdict, suite_name))
    target.parent.mkdir(parents=True, exist_ok=True)
    tree.write(target, encoding="utf-8", xml_declaration=True)
    return target
