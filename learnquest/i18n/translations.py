"""
User-facing message translations.

Simple dictionary approach: language_code -> {key: template}. Thai is the
product's primary language, English is the fallback.
"""
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

TRANSLATIONS: Dict[str, Dict[str, Any]] = {
    "en": {
        # Generic errors
        "error_generic": "Something went wrong. Please try again.",
        "error_database_connection": "We're having trouble connecting to the database. Please try again in a moment.",
        "error_database_write": "We couldn't save your changes. Please try again.",
        "error_external_service": "We're having trouble reaching an external service. Please try again later.",
        "error_invalid_transition": "That action isn't possible anymore.",
        "error_rate_limited": "You're doing that too often. Please slow down and try again in a minute.",
        "error_invalid_input": "Some of the information you entered isn't valid.",
        "error_invalid_field": "Invalid {field}. Please check it and try again.",
        "error_not_found": "{record} not found.",
        "error_unauthorized": "Authentication failed. Please check your credentials.",
        "error_configuration": "The system is not properly configured. Please contact support.",

        # AI coach relay
        "ai_error_rate_limited": "The AI coach is busy right now. Please wait a moment and try again.",
        "ai_error_payment_required": "The AI coach is unavailable. Please contact the administrator.",
        "ai_error_generic": "Something went wrong with the AI coach.",
        "chat_default_message": "Hello",

        # Posts & streaks
        "post_created": "Posted successfully! 🎉 Your learning has been shared with classmates.",
        "profile_updated": "Profile updated! Your changes have been saved.",
        "streak_started": "Streak started! Day 1 🎉",
        "streak_continued": "Streak continues! Day {streak} 🔥",
        "streak_same_day": "Already logged today. Day {streak} 🔥",
        "streak_reset": "Streak reset. Previous: {previous} days. Starting fresh! Day 1 💪",

        # Achievements
        "achievement_unlocked_title": "🏆 Achievement unlocked!",
        "achievement_unlocked_body": "{title} - {description}",

        # Quests
        "quest_completed": "Great job! 🎉 Quest complete, +{xp} XP",
        "quest_progress": "Quest progress {progress}/{target}",
        "quest_already_completed": "Quest already completed today",
        "level_up": "Level up! You reached level {level} ⭐",

        # Mystery boxes
        "box_opened_title": "Congratulations! 🎉",
        "box_reward_xp": "You received {amount} XP",
        "box_reward_other": "You received a reward",

        # Motivation
        "motivation_saved": "Motivation scores saved! 🎯 Your daily assessment is complete.",

        # Goals
        "goal_created": "Goal created! 🎉",
        "goal_completed": "Goal completed! 🎉",
        "habit_checked_in": "Habit checked in! Streak {streak}, strength {strength}%",
    },
    "th": {
        "error_generic": "เกิดข้อผิดพลาด",
        "error_database_connection": "ไม่สามารถเชื่อมต่อฐานข้อมูลได้ กรุณาลองใหม่อีกครั้ง",
        "error_database_write": "ไม่สามารถบันทึกข้อมูลได้ กรุณาลองใหม่อีกครั้ง",
        "error_external_service": "ไม่สามารถเชื่อมต่อบริการภายนอกได้ กรุณาลองใหม่ภายหลัง",
        "error_invalid_transition": "ไม่สามารถทำรายการนี้ได้แล้ว",
        "error_rate_limited": "ทำรายการบ่อยเกินไป กรุณารอสักครู่แล้วลองใหม่",
        "error_invalid_input": "ข้อมูลที่กรอกไม่ถูกต้อง",
        "error_invalid_field": "ข้อมูล {field} ไม่ถูกต้อง กรุณาตรวจสอบอีกครั้ง",
        "error_not_found": "ไม่พบข้อมูลที่ต้องการ",
        "error_unauthorized": "ยืนยันตัวตนไม่สำเร็จ กรุณาตรวจสอบข้อมูลเข้าสู่ระบบ",
        "error_configuration": "ระบบยังตั้งค่าไม่ครบ กรุณาติดต่อผู้ดูแลระบบ",

        "ai_error_rate_limited": "ใช้งาน AI มากเกินไป กรุณารอสักครู่แล้วลองใหม่",
        "ai_error_payment_required": "ระบบ AI ไม่สามารถใช้งานได้ กรุณาติดต่อผู้ดูแลระบบ",
        "ai_error_generic": "เกิดข้อผิดพลาด",
        "chat_default_message": "สวัสดี",

        "post_created": "โพสต์สำเร็จ! 🎉 แบ่งปันการเรียนรู้ให้เพื่อนๆ แล้ว",
        "profile_updated": "บันทึกโปรไฟล์เรียบร้อยแล้ว",
        "streak_started": "เริ่ม Streak แล้ว! วันที่ 1 🎉",
        "streak_continued": "Streak ต่อเนื่อง! วันที่ {streak} 🔥",
        "streak_same_day": "วันนี้บันทึกแล้ว วันที่ {streak} 🔥",
        "streak_reset": "Streak เริ่มใหม่ (เดิม {previous} วัน) วันที่ 1 💪",

        "achievement_unlocked_title": "🏆 ปลดล็อกความสำเร็จ!",
        "achievement_unlocked_body": "{title} - {description}",

        "quest_completed": "เยี่ยมมาก! 🎉 คุณทำภารกิจสำเร็จและได้ +{xp} XP",
        "quest_progress": "ความคืบหน้าภารกิจ {progress}/{target}",
        "quest_already_completed": "ภารกิจนี้สำเร็จแล้ววันนี้",
        "level_up": "เลเวลอัพ! คุณถึงเลเวล {level} แล้ว ⭐",

        "box_opened_title": "ยินดีด้วย! 🎉",
        "box_reward_xp": "คุณได้รับรางวัล {amount} XP",
        "box_reward_other": "คุณได้รับรางวัล",

        "motivation_saved": "บันทึกคะแนนแรงจูงใจแล้ว! 🎯",

        "goal_created": "สำเร็จ! 🎉 สร้างเป้าหมายแล้ว",
        "goal_completed": "ทำเป้าหมายสำเร็จ! 🎉",
        "habit_checked_in": "เช็คอินนิสัยแล้ว! Streak {streak} ความแข็งแรง {strength}%",
    },
}


def resolve_language(lang: Optional[str]) -> str:
    """
    Normalize a requested language code.

    Accepts values like 'th-TH' or 'en_US'. Defaults to 'en' if unsupported.
    """
    if not lang:
        return 'en'

    code = lang.replace('_', '-').split('-')[0].lower()
    if code in TRANSLATIONS:
        return code

    logger.info(f"Unsupported language '{lang}', falling back to English")
    return 'en'


def t(key: str, lang: str = 'en', **kwargs) -> str:
    """
    Translate a key to the specified language with optional formatting.

    Falls back to English when the key or language is missing.

    Examples:
        t('ai_error_rate_limited', lang='th')
        t('quest_completed', lang='en', xp=50)
    """
    lang_dict = TRANSLATIONS.get(lang, TRANSLATIONS['en'])

    translated = lang_dict.get(key, TRANSLATIONS['en'].get(key, f"[MISSING: {key}]"))

    if kwargs:
        try:
            return translated.format(**kwargs)
        except KeyError as e:
            logger.error(f"Translation formatting error for key '{key}': {e}")
            return translated

    return translated


def get_supported_languages() -> list[str]:
    """Return list of supported language codes"""
    return list(TRANSLATIONS.keys())
