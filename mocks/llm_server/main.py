"""Mock LLM server speaking the Gemini generateContent and Ollama generate wire formats.

Model names steer the behavior of the Gemini route:
- contains "blocked": prompt is refused via promptFeedback.blockReason
- contains "unavailable": HTTP 503
- anything else: chatty text wrapping a fenced JSON analysis
"""

import json

from fastapi import FastAPI
from fastapi.responses import JSONResponse

app = FastAPI(title="Mock LLM Server", version="1.0.0")

CANNED_ANALYSIS = {
    "healthScore": 72,
    "summary": "Spending is under control and savings are building steadily.",
    "insights": [
        {
            "type": "strength",
            "title": "Consistent savings",
            "description": "You kept more than a fifth of your income this month.",
            "impact": "Builds your emergency buffer",
            "trend": "improving",
        },
        {
            "type": "weakness",
            "title": "Dining out",
            "description": "Food delivery is your largest discretionary expense.",
            "impact": "Slows progress toward your goals",
            "trend": "stable",
        },
    ],
    "recommendations": [
        {
            "title": "Automate transfers",
            "description": "Move 10% of each salary into savings on payday.",
            "priority": "high",
            "category": "savings",
            "impact": "Adds about two months of runway per year",
        }
    ],
    "riskAssessment": {
        "shortTerm": ["Irregular freelance income"],
        "longTerm": ["No retirement contributions"],
        "mitigationStrategies": ["Open a retirement account"],
    },
}


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/api/generate")
def ollama_generate(body: dict):
    return {
        "model": body.get("model", "llama3:latest"),
        "response": json.dumps(CANNED_ANALYSIS),
        "done": True,
    }


@app.post("/v1beta/models/{model}:generateContent")
def gemini_generate(model: str, body: dict):
    if "unavailable" in model:
        return JSONResponse(status_code=503, content={"error": {"code": 503, "status": "UNAVAILABLE"}})

    if "blocked" in model:
        return {"promptFeedback": {"blockReason": "SAFETY"}}

    text = "Here is your analysis:\n```json\n" + json.dumps(CANNED_ANALYSIS, indent=2) + "\n```\nHope this helps!"
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }
