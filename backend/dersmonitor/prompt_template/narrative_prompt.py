"""
所見生成プロンプトのテンプレート
"""
from typing import List

from ..services.narrative_service import NarrativeContext

SYSTEM_PROMPT = (
    "Sən dəqiq və obyektiv təhsil ekspertisən. Sadəcə faktlara əsaslan. "
    "Cavabı yalnız tələb olunan JSON formatında qaytar."
)

NARRATIVE_PROMPT_TEMPLATE = """
Sən peşəkar təhsil eksperti, metodist və pedaqoqsan.
Dərs müşahidə formasını rubrik təsvirlərinə əsaslanaraq təhlil et.

Müşahidə məlumatları:
- Müşahidəçi: {observer_name}
- Müəllim: {teacher_name}
- Fənn: {subject}
- Mövzu: {topic}
- Sinif: {class_grade}

Hesablanmış ümumi bal: {overall_score}/100

Meyarlar üzrə qiymətləndirmə:
{rated_report}
{unrated_report}
Əlavə rəy: "{comment}"
{media_notes}
TƏLİMAT:
1. Müəllimin fəaliyyətini seçilmiş rubrik təsvirlərinə əsaslanaraq təhlil et.
2. "strengths" siyahısında 5 və 4 verilən meyarları vurğula.
3. "weaknesses" siyahısında 1, 2 və 3 verilən meyarları və rubrikdəki çatışmazlıqları qeyd et.
4. "recommendations" siyahısında zəif nəticələri düzəltmək üçün konkret metodiki addımlar təklif et.
5. Dil: rəsmi, akademik Azərbaycan dili.

ÇIXIŞ FORMATI (yalnız JSON):
{{
    "summary": "dərs müşahidəsinin peşəkar pedaqoji xülasəsi",
    "sentiment": "High" | "Medium" | "Low",
    "strengths": ["...", "..."],
    "weaknesses": ["...", "..."],
    "recommendations": ["...", "..."]
}}
"""


def _format_rated_report(context: NarrativeContext) -> str:
    lines: List[str] = []
    current_section = None
    for item in context.rated_criteria:
        if item.section_title != current_section:
            current_section = item.section_title
            lines.append(f"\nKATEQORİYA: {item.section_title} ({item.section_weight:g}%)")
        lines.append(f"- {item.label}: {item.rating}/5")
        lines.append(f"  (Rubrik: {item.description})")
    return "\n".join(lines) if lines else "- Heç bir meyar qiymətləndirilməyib."


def _format_media_notes(context: NarrativeContext) -> str:
    notes = []
    for media in context.attachments:
        if media.mime_type.startswith("video/"):
            notes.append(
                f"QEYD: Dərsin bir hissəsini əks etdirən video faylı əlavə olunub ({media.name}, {media.mime_type}). "
                "Müşahidəçinin qiymətləndirməsini bu sübutla müqayisə et."
            )
        elif media.mime_type.startswith("audio/"):
            notes.append(
                f"QEYD: Dərsin bir hissəsini əks etdirən səs faylı əlavə olunub ({media.name}). "
                "Səsdəki ünsiyyət tərzini nəzərə al."
            )
        else:
            notes.append(f"QEYD: Əlavə fayl təqdim olunub ({media.name}, {media.mime_type}).")
    return "\n".join(notes) + "\n" if notes else ""


def build_user_prompt(context: NarrativeContext) -> str:
    """評価コンテキストからユーザープロンプトを作成する"""
    unrated_report = ""
    if context.unrated_criteria:
        unrated_report = "\nQiymətləndirilməyən meyarlar: " + "; ".join(context.unrated_criteria) + "\n"

    return NARRATIVE_PROMPT_TEMPLATE.format(
        observer_name=context.observer_name,
        teacher_name=context.teacher_name,
        subject=context.subject,
        topic=context.topic,
        class_grade=context.class_grade,
        overall_score=context.overall_score,
        rated_report=_format_rated_report(context),
        unrated_report=unrated_report,
        comment=context.comment,
        media_notes=_format_media_notes(context),
    )
