"""
Content schedule generation and per-entry regeneration.

The model is asked for ``{"name": ..., "entries": [...]}`` with camelCase
entry keys; replies are parsed leniently and normalised to the snake_case
columns of ``schedule_entries``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

import structlog

from app.ai.client import AIClient
from app.ai.json_repair import loads_lenient

log = structlog.get_logger()

FALLBACK_TITLE = "Publicación principal para redes sociales"
FALLBACK_HASHTAGS = "#marketing #contenido #socialmedia"
DEFAULT_POST_TIME = "12:00"

# camelCase reply keys -> column names
_ENTRY_KEYS = {
    "title": "title",
    "description": "description",
    "content": "content",
    "copyIn": "copy_in",
    "copy_in": "copy_in",
    "copyOut": "copy_out",
    "copy_out": "copy_out",
    "designInstructions": "design_instructions",
    "design_instructions": "design_instructions",
    "platform": "platform",
    "postDate": "post_date",
    "post_date": "post_date",
    "postTime": "post_time",
    "post_time": "post_time",
    "hashtags": "hashtags",
}

# Regeneration area -> (entry column, label used in the prompt)
AREA_FIELDS = {
    "titles": ("title", "TÍTULOS"),
    "descriptions": ("description", "DESCRIPCIONES"),
    "content": ("content", "CONTENIDO"),
    "copy_in": ("copy_in", "TEXTO INTEGRADO (copyIn)"),
    "copy_out": ("copy_out", "TEXTO DESCRIPCIÓN (copyOut)"),
    "design_instructions": ("design_instructions", "INSTRUCCIONES DE DISEÑO"),
    "platforms": ("platform", "PLATAFORMAS"),
    "hashtags": ("hashtags", "HASHTAGS"),
}
_AREA_ALIASES = {
    "copyIn": "copy_in",
    "copyOut": "copy_out",
    "designInstructions": "design_instructions",
}

_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")


@dataclass
class GeneratedSchedule:
    name: str
    entries: list[dict] = field(default_factory=list)
    used_fallback: bool = False


# ---------------------------------------------------------------------------
# Post counts
# ---------------------------------------------------------------------------

def _posts_per_month(network: dict) -> float:
    for key in ("postsPerMonth", "posts_per_month", "frequency", "monthlyPosts"):
        value = network.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0
    return 0.0


def selected_networks(social_networks: Optional[list]) -> list[dict]:
    """Networks that are selected and have a positive monthly frequency."""
    result = []
    for network in social_networks or []:
        if not isinstance(network, dict):
            continue
        ppm = _posts_per_month(network)
        selected = network.get("selected", ppm > 0)
        if selected and ppm > 0:
            result.append({
                "name": network.get("name") or network.get("platform") or "Red social",
                "posts_per_month": ppm,
            })
    return result


def posts_for_period(social_networks: Optional[list], duration_days: int) -> int:
    """Number of posts to request for a period of ``duration_days``."""
    networks = selected_networks(social_networks)
    if not networks:
        return max(3, math.ceil(duration_days / 5))
    return sum(math.ceil(n["posts_per_month"] * duration_days / 30) for n in networks)


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def _as_text(value: Any, default: str) -> str:
    if not value:
        return default
    if isinstance(value, list):
        parts = []
        for item in value:
            if isinstance(item, dict):
                parts.append(str(item.get("name") or item.get("theme") or item.get("title") or item))
            else:
                parts.append(str(item))
        return ", ".join(parts) or default
    return str(value)


def build_schedule_prompt(
    project: dict,
    analysis: Optional[dict],
    start_date: date,
    duration_days: int,
    specifications: Optional[str] = None,
    previous_content: Optional[list[str]] = None,
    additional_instructions: Optional[str] = None,
) -> str:
    analysis = analysis or {}
    end_date = start_date + timedelta(days=duration_days)
    networks = selected_networks(analysis.get("social_networks"))
    total_posts = posts_for_period(analysis.get("social_networks"), duration_days)

    if networks:
        network_lines = "\n".join(
            f"- {n['name']}: {math.ceil(n['posts_per_month'] * duration_days / 30)} publicaciones "
            f"({n['posts_per_month']:g} al mes)"
            for n in networks
        )
    else:
        network_lines = (
            "Sugiere 2-3 redes sociales estratégicamente seleccionadas para el público objetivo."
        )

    history = previous_content or []
    history_text = (
        "\n".join(f"- {item[:200]}" for item in history[-30:])
        if history
        else "Sin historial de contenido previo disponible."
    )

    prompt = f"""
Crea un cronograma de contenido para redes sociales para el proyecto "{project.get('name')}".
Actúa como un experto en marketing digital, branding y narrativa de marca.

INFORMACIÓN DEL PROYECTO:
- Cliente: {project.get('client') or 'No especificado'}
- Descripción: {project.get('description') or 'No especificada'}
- Misión: {analysis.get('mission') or 'No especificada'}
- Visión: {analysis.get('vision') or 'No especificada'}
- Objetivos: {analysis.get('objectives') or 'No especificados'}
- Audiencia objetivo: {analysis.get('target_audience') or 'No especificada'}
- Buyer persona: {analysis.get('buyer_persona') or 'No especificada'}
- Tono de marca: {analysis.get('brand_tone') or 'No especificado'}
- Palabras clave: {_as_text(analysis.get('keywords'), 'No especificadas')}
- Temas de contenido: {_as_text(analysis.get('content_themes'), 'No especificados')}

PERIODO: de {start_date.isoformat()} a {end_date.isoformat()} ({duration_days} días)

ESPECIFICACIONES DEL CLIENTE:
{specifications or 'Ninguna especificación adicional proporcionada.'}

REDES SOCIALES:
{network_lines}

HISTORIAL DE CONTENIDO (EVITAR DUPLICACIÓN):
{history_text}

INSTRUCCIONES ADICIONALES:
{additional_instructions or 'Ninguna instrucción adicional.'}

Genera exactamente {total_posts} publicaciones distribuidas a lo largo del periodo.
En "description" empieza con "Objetivo: ..." indicando la fase del embudo.
Estructura "content" como Hook, Insight y CTA.

RESPONDE ÚNICAMENTE CON JSON VÁLIDO, sin texto antes ni después:
{{
  "name": "Nombre del cronograma",
  "entries": [
    {{
      "title": "Título",
      "description": "Objetivo de la publicación",
      "content": "Contenido principal",
      "copyIn": "Texto sobre la imagen",
      "copyOut": "Texto de la descripción del post",
      "designInstructions": "Instrucciones de diseño",
      "platform": "Instagram",
      "postDate": "YYYY-MM-DD",
      "postTime": "HH:MM",
      "hashtags": "#hashtag1 #hashtag2"
    }}
  ]
}}
"""
    if additional_instructions:
        prompt += (
            "\nINSTRUCCIONES OBLIGATORIAS DEL USUARIO (PRIORIDAD MÁXIMA):\n"
            f"{additional_instructions}\n"
        )
    return prompt.strip()


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------

def normalize_post_time(value: Any) -> str:
    match = _TIME_RE.search(str(value or ""))
    if not match:
        return DEFAULT_POST_TIME
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return DEFAULT_POST_TIME
    return f"{hours:02d}:{minutes:02d}"


def _parse_date(value: Any) -> Optional[date]:
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def normalize_entry(raw: dict) -> Optional[dict]:
    """Map a reply entry onto entry columns. None when title, platform or date is missing."""
    entry: dict = {}
    for key, value in raw.items():
        column = _ENTRY_KEYS.get(key)
        if column and value is not None:
            entry[column] = value

    if isinstance(entry.get("hashtags"), list):
        entry["hashtags"] = " ".join(str(tag) for tag in entry["hashtags"])
    for key, value in list(entry.items()):
        if key != "post_date" and not isinstance(value, str):
            entry[key] = str(value)

    post_date = _parse_date(entry.get("post_date")) if entry.get("post_date") else None
    if not entry.get("title") or not entry.get("platform") or post_date is None:
        return None
    entry["post_date"] = post_date
    entry["post_time"] = normalize_post_time(entry.get("post_time"))
    return entry


def fallback_entry(start_date: date) -> dict:
    return {
        "title": FALLBACK_TITLE,
        "description": (
            "Este es un cronograma básico para comenzar. "
            "Por favor regenera para obtener más opciones."
        ),
        "content": "Contenido detallado para la red social principal del proyecto.",
        "copy_in": "Texto integrado para diseño",
        "copy_out": "Texto para descripción en redes sociales ✨",
        "design_instructions": "Diseño basado en la identidad visual del proyecto",
        "platform": "Instagram",
        "post_date": start_date,
        "post_time": DEFAULT_POST_TIME,
        "hashtags": FALLBACK_HASHTAGS,
    }


def parse_schedule_reply(text: str, project_name: str, start_date: date) -> GeneratedSchedule:
    default_name = f"Cronograma para {project_name}"
    data = loads_lenient(text)

    raw_entries: list = []
    name = default_name
    if isinstance(data, dict):
        name = str(data.get("name") or default_name)
        raw_entries = data.get("entries") or []
    if not isinstance(raw_entries, list):
        raw_entries = []

    entries = []
    for raw in raw_entries:
        if isinstance(raw, dict):
            entry = normalize_entry(raw)
            if entry:
                entries.append(entry)

    if not entries:
        log.warning("schedule.reply_unusable", project=project_name, chars=len(text or ""))
        return GeneratedSchedule(name=name, entries=[fallback_entry(start_date)], used_fallback=True)

    entries.sort(key=lambda e: (e["post_date"], e["post_time"]))
    return GeneratedSchedule(name=name, entries=entries)


async def generate_schedule(
    client: AIClient,
    project: dict,
    analysis: Optional[dict],
    start_date: date,
    duration_days: int,
    specifications: Optional[str] = None,
    previous_content: Optional[list[str]] = None,
    additional_instructions: Optional[str] = None,
) -> GeneratedSchedule:
    """One provider call, parsed leniently. AIProviderError propagates."""
    prompt = build_schedule_prompt(
        project,
        analysis,
        start_date,
        duration_days,
        specifications=specifications,
        previous_content=previous_content,
        additional_instructions=additional_instructions,
    )
    reply = await client.generate_text(prompt, temperature=0.8, max_tokens=6000)
    return parse_schedule_reply(reply, project.get("name") or "", start_date)


# ---------------------------------------------------------------------------
# Regeneration (selective edit of existing entries)
# ---------------------------------------------------------------------------

def resolve_areas(selected_areas: Optional[dict]) -> list[str]:
    """Selected area names in canonical form; every area when none is selected."""
    chosen = []
    for area, selected in (selected_areas or {}).items():
        area = _AREA_ALIASES.get(area, area)
        if selected and area in AREA_FIELDS and area not in chosen:
            chosen.append(area)
    return chosen or list(AREA_FIELDS)


def build_edit_prompt(
    entry: dict,
    areas: list[str],
    additional_instructions: Optional[str] = None,
    specific_instructions: Optional[dict] = None,
) -> str:
    specific_instructions = {
        _AREA_ALIASES.get(k, k): v for k, v in (specific_instructions or {}).items()
    }
    area_labels = ", ".join(AREA_FIELDS[a][1].lower() for a in areas)
    lines = [
        "Eres un experto en marketing de contenidos. Tu tarea es EDITAR ÚNICAMENTE "
        "las áreas indicadas de esta publicación.",
        "",
        "PUBLICACIÓN ACTUAL:",
        f"- Título: {entry.get('title') or ''}",
        f"- Descripción: {entry.get('description') or ''}",
        f"- Contenido: {entry.get('content') or ''}",
        f"- Texto Integrado (copyIn): {entry.get('copy_in') or ''}",
        f"- Texto Descripción (copyOut): {entry.get('copy_out') or ''}",
        f"- Instrucciones de Diseño: {entry.get('design_instructions') or ''}",
        f"- Plataforma: {entry.get('platform') or ''}",
        f"- Hashtags: {entry.get('hashtags') or ''}",
        "",
    ]
    if additional_instructions:
        lines += [additional_instructions, ""]
    lines.append(f"Modifica ÚNICAMENTE estos elementos: {area_labels}")
    lines.append("MANTÉN sin cambios todos los demás elementos.")
    for area in areas:
        note = (specific_instructions.get(area) or "").strip()
        if note:
            lines.append(f"{AREA_FIELDS[area][1]}: {note}")
    lines += [
        "",
        "RESPONDE ÚNICAMENTE CON UN JSON VÁLIDO con esta estructura:",
        '{"title": "...", "description": "...", "content": "...", "copyIn": "...", '
        '"copyOut": "...", "designInstructions": "...", "platform": "...", "hashtags": "..."}',
    ]
    return "\n".join(lines)


def apply_entry_edit(entry: dict, reply: str, areas: list[str]) -> dict:
    """Changes allowed by ``areas``; empty when the reply is unusable."""
    data = loads_lenient(reply)
    if not isinstance(data, dict):
        return {}
    edited = {}
    for key, value in data.items():
        column = _ENTRY_KEYS.get(key)
        if column:
            edited[column] = value
    allowed = {AREA_FIELDS[a][0] for a in areas}
    changes = {}
    for column in allowed:
        value = edited.get(column)
        if isinstance(value, list):
            value = " ".join(str(v) for v in value)
        if isinstance(value, str) and value.strip() and value != entry.get(column):
            changes[column] = value
    return changes


async def regenerate_entry(
    client: AIClient,
    entry: dict,
    areas: list[str],
    additional_instructions: Optional[str] = None,
    specific_instructions: Optional[dict] = None,
) -> dict:
    prompt = build_edit_prompt(entry, areas, additional_instructions, specific_instructions)
    reply = await client.generate_text(prompt, temperature=0.7, max_tokens=2000)
    return apply_entry_edit(entry, reply, areas)
