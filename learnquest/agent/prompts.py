"""Prompt text for the AI learning coach (Thai, for secondary-school students)"""
from typing import Mapping, Optional, Sequence

from learnquest.gamification.goal_system import progress_percent
from learnquest.gamification.motivation import DIMENSION_LABELS
from learnquest.models.activity import MOTIVATION_DIMENSIONS
from learnquest.models.goal import Goal
from learnquest.models.profile import Profile

BRIEFING_SYSTEM_PROMPT = (
    "คุณคือ AI Learning Coach ที่เป็นมิตร ให้กำลังใจ และให้คำแนะนำส่วนตัวแก่นักเรียนมัธยม\n"
    "พูดภาษาไทยที่เป็นกันเอง ใช้ emoji เล็กน้อย และเน้นสร้างแรงบันดาลใจ\n"
    "วิเคราะห์ข้อมูลแล้วให้คำแนะนำที่ชัดเจนและ actionable"
)

CHAT_SYSTEM_PROMPT = (
    "คุณคือ AI Learning Coach ที่เป็นมิตร ให้คำแนะนำเกี่ยวกับการเรียนรู้ แรงจูงใจ และการพัฒนาตนเอง\n"
    "ตอบเป็นภาษาไทยที่เข้าใจง่าย ใช้ emoji บ้าง และให้คำตอบที่เป็นประโยชน์จริง"
)

BRIEFING_INSTRUCTIONS = (
    "สร้างข้อความสั้นๆ (150-200 คำ) ที่มี:\n"
    "1. ทักทายและชื่นชมความพยายาม\n"
    "2. highlight ข้อมูลสำคัญ (streak, emotions, progress)\n"
    "3. ชี้ให้เห็นมิติ motivation ที่ต่ำและต้องพัฒนา\n"
    "4. แนะนำกิจกรรม 2-3 อย่างที่ทำได้วันนี้เพื่อพัฒนา\n"
    "5. ให้กำลังใจปิดท้าย"
)

DEFAULT_STUDENT_NAME = "นักเรียน"


def _format_energy(energy_level: Optional[int]) -> str:
    return f"{energy_level}/5" if energy_level is not None else "-"


def build_briefing_prompt(
    profile: Profile,
    motivation_averages: Optional[Mapping[str, float]],
    emotions: Sequence[Mapping],
    goals: Sequence[Goal],
) -> str:
    """
    User prompt for the morning briefing.

    Sections without data (no ratings, no emotion logs, no active goals)
    are left out.
    """
    sections = [
        "สร้าง morning briefing สำหรับนักเรียน:",
        "\n".join([
            "ข้อมูลนักเรียน:",
            f"- ชื่อ: {profile.name or DEFAULT_STUDENT_NAME}",
            f"- Streak: {profile.streak} วัน",
            f"- Level: {profile.level}",
            f"- XP: {profile.xp}",
        ]),
    ]

    if motivation_averages:
        lines = ["Motivation Scores (ค่าเฉลี่ย 7 วันล่าสุด):"]
        lines += [
            f"- {DIMENSION_LABELS[dim]}: {motivation_averages[dim]:.1f}/10"
            for dim in MOTIVATION_DIMENSIONS
        ]
        sections.append("\n".join(lines))

    if emotions:
        lines = ["Emotion Trend (7 วันล่าสุด):"]
        lines += [f"- {e['emotion']} (Energy: {_format_energy(e.get('energy_level'))})" for e in emotions]
        sections.append("\n".join(lines))

    if goals:
        lines = ["เป้าหมายที่กำลังดำเนินการ:"]
        lines += [f"- {goal.title} ({progress_percent(goal)}%)" for goal in goals]
        sections.append("\n".join(lines))

    sections.append(BRIEFING_INSTRUCTIONS)
    return "\n\n".join(sections)
