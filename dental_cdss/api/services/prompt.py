"""Prompt sent to the generative service for an enhanced analysis."""

from __future__ import annotations

import json

from .diagnostic_input import DiagnosticInput

RESPONSE_STRUCTURE = """{
  "refinedPrognosis": {
    "status": "Good" | "Fair" | "Poor" | "Questionable",
    "explanation": "Detailed clinical explanation",
    "riskFactors": ["Specific risk factors"],
    "longTermOutlook": "Long-term prognosis explanation"
  },
  "detailedFindings": {
    "primaryCondition": {
      "description": "Detailed clinical description",
      "severity": "mild" | "moderate" | "severe",
      "implications": ["Clinical implications"]
    },
    "secondaryFindings": [
      {
        "condition": "Name of condition",
        "description": "Detailed description",
        "severity": "mild" | "moderate" | "severe",
        "implications": ["Clinical implications"]
      }
    ],
    "riskAssessment": {
      "current": "Current risk status description",
      "future": "Future risk projection",
      "mitigationStrategies": ["Specific mitigation strategies"]
    }
  },
  "detailedTreatmentPlan": {
    "immediate": ["Immediate actions needed"],
    "shortTerm": ["Short-term treatment steps"],
    "longTerm": ["Long-term management steps"],
    "preventiveMeasures": ["Preventive actions"],
    "lifestyle": ["Lifestyle recommendations"]
  }
}"""

PROMPT_TEMPLATE = """You are a dental analysis AI assistant. Analyze the following dental case and provide a detailed assessment.
Your response must be a valid JSON object that exactly matches the required structure.

Input Data:
Diagnosis: {diagnosis}
Findings: {findings}
Patient Data: {patient}

Instructions:
1. Your entire response must be a single JSON object
2. Do not include any explanatory text outside the JSON
3. Do not use markdown formatting
4. All string values must be descriptive and clinically relevant
5. All arrays must have at least one item
6. Severity must be one of: "mild", "moderate", "severe"
7. All text fields should be detailed and professionally written
8. Include specific measurements and clinical terms where relevant

Required JSON Structure:
{structure}

Example severity descriptions:
- mild: "Early stage with minimal tissue involvement"
- moderate: "Progressive condition requiring intervention"
- severe: "Advanced stage with significant impact"

Base your analysis on the provided diagnosis, findings, and patient data. Ensure all descriptions are clinically accurate and professionally written."""


def build_prompt(data: DiagnosticInput) -> str:
    return PROMPT_TEMPLATE.format(
        diagnosis=data.diagnosis,
        findings=json.dumps(data.findings.to_wire(), indent=2, sort_keys=True),
        patient=json.dumps(data.patient_context.to_wire(), indent=2, sort_keys=True),
        structure=RESPONSE_STRUCTURE,
    )


__all__ = ["PROMPT_TEMPLATE", "RESPONSE_STRUCTURE", "build_prompt"]
