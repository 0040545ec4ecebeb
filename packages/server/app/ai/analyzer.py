"""Document, image, chat and task-suggestion prompts."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

import structlog

from app.ai.client import AIClient
from app.ai.json_repair import loads_lenient

log = structlog.get_logger()

DOCUMENT_FIELDS = (
    "mission",
    "vision",
    "objectives",
    "target_audience",
    "brand_tone",
    "keywords",
    "core_values",
    "content_themes",
    "competitor_analysis",
    "summary",
)
_DOCUMENT_KEY_ALIASES = {
    "targetAudience": "target_audience",
    "brandTone": "brand_tone",
    "coreValues": "core_values",
    "contentThemes": "content_themes",
    "competitorAnalysis": "competitor_analysis",
}
MAX_DOCUMENT_CHARS = 30000

GENERAL_SYSTEM_PROMPT = (
    "Eres un asistente de marketing para Cohete Workflow, "
    "una plataforma de gestión de proyectos de marketing."
)
CHAT_FALLBACK_REPLY = "Lo siento, no pude procesar esa solicitud."

IMAGE_PROMPTS = {
    "brand": """Analiza esta imagen desde una perspectiva de branding y marketing.
Identifica los siguientes elementos:
1. Elementos visuales de la marca (logo, colores, tipografía)
2. Mensaje visual principal
3. Posicionamiento de marca que transmite
4. Coherencia con estándares actuales de diseño
5. Sugerencias para mejorar la alineación de marca""",
    "audience": """Analiza esta imagen para identificar el público objetivo:
1. Perfil demográfico aproximado del público objetivo
2. Necesidades y deseos que la imagen intenta abordar
3. Nivel de conexión emocional que podría generar
4. Posible respuesta del público objetivo
5. Recomendaciones para mejorar la conexión con la audiencia""",
    "content": """Analiza esta imagen como contenido de marketing:
1. Tipo de contenido (promocional, educativo, inspiracional, etc.)
2. Calidad visual y composición
3. Mensaje principal que transmite
4. Efectividad para captar atención
5. Plataformas de redes sociales donde sería más efectiva
6. Recomendaciones para optimizar su impacto""",
}

_SECTION_RE = re.compile(r"(\d+)[\.\)]\s*([^:\n]+):\s*([^\n]+)")
_NUMBERED_LINE_RE = re.compile(r"(\d+)[\.\)]\s*([^\n]+)")

STARTER_TASKS = [
    {
        "title": "Crear contenido para Instagram",
        "description": "Preparar las publicaciones de la semana para Instagram según el tono de marca.",
        "priority": "high",
        "tags": ["instagram", "contenido"],
    },
    {
        "title": "Diseñar gráficos para Facebook",
        "description": "Diseñar las piezas gráficas de Facebook alineadas con la identidad visual.",
        "priority": "medium",
        "tags": ["facebook", "diseño"],
    },
    {
        "title": "Revisar métricas de la campaña",
        "description": "Analizar alcance, engagement y conversiones de las últimas publicaciones.",
        "priority": "medium",
        "tags": ["métricas"],
    },
]
_VALID_PRIORITIES = {"low", "medium", "high", "urgent", "critical"}


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def build_document_prompt(text: str) -> str:
    return f"""
As a marketing expert, analyze the following document and extract key marketing insights in JSON format.
Return an object with the keys: mission, vision, objectives, targetAudience, brandTone,
keywords, coreValues, contentThemes (list of {{"theme", "keywords"}}),
competitorAnalysis (list of {{"name", "strengths", "weaknesses", "contentStrategy"}}) and summary.
Omit a key when the document has no information for it. Reply in Spanish.

Document to analyze:
{text[:MAX_DOCUMENT_CHARS]}
""".strip()


def parse_document_reply(reply: str) -> dict:
    data = loads_lenient(reply)
    if not isinstance(data, dict):
        return {"summary": reply[:1000] + ("..." if len(reply) > 1000 else "")}
    result = {}
    for key, value in data.items():
        key = _DOCUMENT_KEY_ALIASES.get(key, key)
        if key in DOCUMENT_FIELDS and value not in (None, ""):
            result[key] = value
    if "summary" not in result:
        result["summary"] = ""
    return result


async def analyze_document(client: AIClient, text: str) -> dict:
    reply = await client.generate_text(build_document_prompt(text), temperature=0.7, max_tokens=2000)
    return parse_document_reply(reply)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def extract_structured_data(text: str) -> dict:
    """Numbered ``1. Title: content`` sections, else ``Punto N`` lines, else a summary."""
    stripped = text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        try:
            parsed = json.loads(stripped)
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    result: dict[str, str] = {}
    for match in _SECTION_RE.finditer(text):
        result[match.group(2).strip()] = match.group(3).strip()

    if not result:
        for match in _NUMBERED_LINE_RE.finditer(text):
            result[f"Punto {match.group(1)}"] = match.group(2).strip()

    return result or {"summary": text}


async def analyze_marketing_image(
    client: AIClient, image_b64: str, mime_type: str, analysis_type: str = "content"
) -> dict:
    prompt = IMAGE_PROMPTS.get(analysis_type, IMAGE_PROMPTS["content"])
    reply = await client.generate_text_with_image(prompt, image_b64, mime_type=mime_type)
    return {
        "analysis_type": analysis_type,
        "raw_analysis": reply,
        "structured_data": extract_structured_data(reply),
    }


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

def build_chat_prompt(
    message: str,
    project_context: Optional[dict] = None,
    history: Optional[list[dict]] = None,
) -> str:
    if project_context:
        system = (
            f'Eres un asistente de marketing para un proyecto llamado "{project_context.get("name")}" '
            f'para el cliente "{project_context.get("client")}".\n'
            "Utiliza el siguiente contexto del proyecto en tus respuestas cuando sea relevante:\n"
            f"{json.dumps(project_context, ensure_ascii=False, indent=2, default=str)}"
        )
    else:
        system = GENERAL_SYSTEM_PROMPT

    prompt = system + "\n\n"
    if history:
        prompt += "Historial de conversación:\n"
        for item in history:
            speaker = "Usuario" if item.get("role") == "user" else "Asistente"
            prompt += f"{speaker}: {item.get('content')}\n"
        prompt += "\n"
    prompt += f"Usuario: {message}\n\nAsistente:"
    return prompt


async def process_chat_message(
    client: AIClient,
    message: str,
    project_context: Optional[dict] = None,
    history: Optional[list[dict]] = None,
) -> str:
    reply = await client.generate_text(
        build_chat_prompt(message, project_context, history), temperature=0.7, max_tokens=1000
    )
    return reply.strip() or CHAT_FALLBACK_REPLY


# ---------------------------------------------------------------------------
# Task suggestions
# ---------------------------------------------------------------------------

def build_tasks_prompt(project_context: dict, count: int = 5) -> str:
    return f"""
Eres un gestor de proyectos de marketing. A partir del contexto del proyecto,
propón {count} tareas concretas para el equipo.

Contexto del proyecto:
{json.dumps(project_context, ensure_ascii=False, indent=2, default=str)}

RESPONDE ÚNICAMENTE CON JSON VÁLIDO:
{{"tasks": [{{"title": "...", "description": "...", "priority": "low|medium|high|urgent", "tags": ["..."]}}]}}
""".strip()


def _clean_task(raw: Any) -> Optional[dict]:
    if not isinstance(raw, dict) or not str(raw.get("title") or "").strip():
        return None
    priority = str(raw.get("priority") or "medium").lower()
    tags = raw.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]
    return {
        "title": str(raw["title"]).strip()[:300],
        "description": str(raw.get("description") or "") or None,
        "priority": priority if priority in _VALID_PRIORITIES else "medium",
        "tags": [str(t) for t in tags],
    }


def parse_tasks_reply(reply: str) -> list[dict]:
    data = loads_lenient(reply)
    raw_tasks = data.get("tasks") if isinstance(data, dict) else None
    tasks = [t for t in (_clean_task(r) for r in raw_tasks or []) if t]
    if not tasks:
        log.warning("tasks.reply_unusable", chars=len(reply or ""))
        return [dict(task, tags=list(task["tags"])) for task in STARTER_TASKS]
    return tasks


async def suggest_tasks(client: AIClient, project_context: dict, count: int = 5) -> list[dict]:
    reply = await client.generate_text(
        build_tasks_prompt(project_context, count), temperature=0.7, max_tokens=2000
    )
    return parse_tasks_reply(reply)
