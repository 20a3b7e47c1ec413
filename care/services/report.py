"""
Rule-based clinical summary for a set of vitals.

The thresholds are conventional screening cut-offs; the output is a
triage hint for the reviewing doctor, not a diagnosis.
"""
from __future__ import annotations

import re
from typing import Optional

_BP_RE = re.compile(r'^\s*(\d{2,3})\s*/\s*(\d{2,3})\s*$')


def parse_bp(bp: Optional[str]) -> Optional[tuple[int, int]]:
    m = _BP_RE.match(bp or '')
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def assess_vitals(bp: Optional[str], sugar: Optional[float]) -> dict:
    """Return flags and a suggested condition for the given vitals."""
    flags: list[str] = []
    severity = 0

    parsed = parse_bp(bp)
    if parsed:
        sys_, dia = parsed
        if sys_ >= 180 or dia >= 120:
            flags.append('hypertensive crisis')
            severity = max(severity, 2)
        elif sys_ >= 140 or dia >= 90:
            flags.append('high blood pressure')
            severity = max(severity, 1)
        elif sys_ < 90 or dia < 60:
            flags.append('low blood pressure')
            severity = max(severity, 1)

    if sugar is not None:
        if sugar >= 300 or sugar < 54:
            flags.append('very high blood sugar' if sugar >= 300 else 'very low blood sugar')
            severity = max(severity, 2)
        elif sugar >= 180:
            flags.append('high blood sugar')
            severity = max(severity, 1)
        elif sugar < 70:
            flags.append('low blood sugar')
            severity = max(severity, 1)

    condition = ('stable', 'attention', 'critical')[severity]
    return {'condition': condition, 'flags': flags}


def _fmt(value, unit: str = '') -> str:
    if value is None or value == '':
        return 'n/a'
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{unit}"


def generate_report(patient_name: str, vitals: dict, symptoms: str = '') -> dict:
    assessment = assess_vitals(vitals.get('bp'), vitals.get('sugar'))
    if assessment['flags']:
        summary = 'Monitor closely: ' + ', '.join(assessment['flags']) + '.'
    else:
        summary = 'Patient appears stable.'
    text = (
        f"Clinical Report for {patient_name}:\n"
        f"Vitals: BP {_fmt(vitals.get('bp'))}, Sugar {_fmt(vitals.get('sugar'), ' mg/dL')}, "
        f"Weight {_fmt(vitals.get('weight'), ' kg')}.\n"
        f"Symptoms: {symptoms or 'none reported'}.\n"
        f"Assessment: {summary}"
    )
    return {'report': text, 'assessment': assessment}
