"""Prompt assembly for the assistant, the activity analysis and insights."""
from __future__ import annotations

import json
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.db.models.focus_session import FocusSession
from app.db.models.goal import Goal
from app.db.models.habit import Habit, HabitCompletion
from app.db.models.journal_entry import JournalEntry
from app.db.models.quest import Quest
from app.db.models.task import Task
from app.services.gamification.windows import utc_now
from app.services.user_service import ensure_player_profile

TASK_LIMIT = 50
JOURNAL_LIMIT = 10
FOCUS_LIMIT = 20
COMPLETION_LIMIT = 90
HISTORY_LIMIT = 10

SUPPORTED_LANGUAGES = ("fr", "en", "es", "de")
DEFAULT_LANGUAGE = "fr"

INSIGHT_KINDS = (
    "daily_briefing",
    "smart_prioritization",
    "cross_insights",
    "goal_prediction",
    "habit_dna",
    "flow_prediction",
    "mood_analysis",
)

PromptPair = Tuple[str, str]


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def _row(obj: Any, fields: Sequence[str]) -> Dict[str, Any]:
    return {name: _json_safe(getattr(obj, name)) for name in fields}


def build_user_context(db: Session, user_id: UUID) -> Dict[str, Any]:
    """Snapshot of the user's recent records, ready for ``json.dumps``."""
    bundle = ensure_player_profile(db, user_id)
    profile = bundle.profile

    tasks = (
        db.query(Task).filter(Task.user_id == user_id).order_by(desc(Task.created_at)).limit(TASK_LIMIT).all()
    )
    habits = db.query(Habit).filter(Habit.user_id == user_id).order_by(Habit.created_at).all()
    goals = db.query(Goal).filter(Goal.user_id == user_id).order_by(Goal.created_at).all()
    journal = (
        db.query(JournalEntry)
        .filter(JournalEntry.user_id == user_id)
        .order_by(desc(JournalEntry.created_at))
        .limit(JOURNAL_LIMIT)
        .all()
    )
    focus = (
        db.query(FocusSession)
        .filter(FocusSession.user_id == user_id)
        .order_by(desc(FocusSession.started_at))
        .limit(FOCUS_LIMIT)
        .all()
    )
    completions = (
        db.query(HabitCompletion)
        .filter(HabitCompletion.user_id == user_id)
        .order_by(desc(HabitCompletion.completed_date))
        .limit(COMPLETION_LIMIT)
        .all()
    )
    quests = db.query(Quest).filter(Quest.user_id == user_id, Quest.completed.is_(False)).all()

    return {
        "tasks": [
            _row(t, ("id", "title", "priority", "due_date", "completed", "completed_at", "created_at"))
            for t in tasks
        ],
        "habits": [_row(h, ("id", "title", "frequency", "category", "streak", "total_completions")) for h in habits],
        "goals": [_row(g, ("id", "title", "category", "progress", "completed", "target_date")) for g in goals],
        "journalEntries": [_row(j, ("id", "title", "mood", "tags", "created_at")) for j in journal],
        "focusSessions": [_row(f, ("id", "title", "duration", "started_at", "completed_at")) for f in focus],
        "habitCompletions": [_row(c, ("habit_id", "completed_date")) for c in completions],
        "quests": [_row(q, ("title", "quest_type", "category", "current_progress", "target_value")) for q in quests],
        "userProfile": {
            "display_name": bundle.user.display_name,
            "language": bundle.user.language,
            "level": profile.level,
            "experience_points": profile.experience_points,
            "credits": profile.credits,
            "total_quests_completed": profile.total_quests_completed,
        },
    }


def _format_history(messages: Iterable[Dict[str, Any]]) -> str:
    lines = []
    valid = [message for message in messages if isinstance(message, dict)]
    for message in valid[-HISTORY_LIMIT:]:
        role = message.get("role", "user")
        content = message.get("content", "")
        lines.append(f"{role}: {content}")
    return "\n".join(lines) or "No previous messages"


def build_chat_prompt(context: Dict[str, Any], message: str) -> PromptPair:
    history = context.get("previousMessages") or context.get("previous_messages") or []
    if not isinstance(history, list):
        history = []

    def section(key: str) -> str:
        return json.dumps(context.get(key, []), indent=2, ensure_ascii=False, default=str)

    system_prompt = f"""You are DeepFlow AI, an assistant specialised in productivity and personal organisation.

USER CONTEXT (live):
- Habits: {section("habits")}
- Tasks: {section("tasks")}
- Goals: {section("goals")}
- Recent journal entries: {section("journalEntries")}
- Recent focus sessions: {section("focusSessions")}
- User profile: {json.dumps(context.get("userProfile", {}), indent=2, ensure_ascii=False, default=str)}

MESSAGE HISTORY:
{_format_history(history)}

CAPABILITIES:
- You may propose creating several items at once (habits, tasks, goals).
- When you do, reply with a JSON object containing "suggestions" with "createMultiple".

INSTRUCTIONS:
- Answer in the user's language, concisely and practically.
- Use the live data for personalised advice.
- When proposing several items, format the reply as:
  {{
    "response": "Here is what I suggest...",
    "suggestions": {{
      "createMultiple": {{
        "type": "habits|tasks|goals",
        "items": []
      }}
    }}
  }}"""
    return system_prompt, f"User message: {message}"


def summarize_activity(
    tasks: Sequence[Task],
    habits: Sequence[Habit],
    goals: Sequence[Goal],
    focus_sessions: Sequence[FocusSession],
    journal_entries: Sequence[JournalEntry],
) -> Dict[str, Any]:
    completed_tasks = sum(1 for t in tasks if t.completed)
    completed_goals = sum(1 for g in goals if g.completed)
    total_minutes = sum(f.duration or 0 for f in focus_sessions)
    return {
        "tasks": {"total": len(tasks), "completed": completed_tasks, "pending": len(tasks) - completed_tasks},
        "habits": {"total": len(habits)},
        "goals": {"total": len(goals), "completed": completed_goals, "in_progress": len(goals) - completed_goals},
        "focus": {
            "sessions": len(focus_sessions),
            "total_minutes": total_minutes,
            "average_minutes": round(total_minutes / len(focus_sessions)) if focus_sessions else 0,
        },
        "journal": {"entries": len(journal_entries)},
    }


def _summary_text(summary: Dict[str, Any]) -> str:
    tasks, goals, focus = summary["tasks"], summary["goals"], summary["focus"]
    return (
        "User Activity Summary:\n"
        f"- Tasks: {tasks['total']} total, {tasks['completed']} completed, {tasks['pending']} pending\n"
        f"- Habits: {summary['habits']['total']} being tracked\n"
        f"- Goals: {goals['total']} total, {goals['completed']} completed, {goals['in_progress']} in progress\n"
        f"- Focus: {focus['sessions']} sessions, {focus['total_minutes']} minutes total, "
        f"{focus['average_minutes']} minutes average\n"
        f"- Journal: {summary['journal']['entries']} entries"
    )


_ANALYSIS_TEMPLATES = {
    "fr": (
        "En tant que DeepFlow AI, analysez les données de cet utilisateur et fournissez des insights "
        "personnalisés et des recommandations:\n\n{summary}\n\nVeuillez fournir:\n"
        "1. 📊 Une brève analyse de productivité\n"
        "2. 🚀 Trois recommandations spécifiques pour s'améliorer\n"
        "3. 💪 Une perspective motivante basée sur leurs habitudes\n\n"
        "Utilisez le format Markdown avec des sections claires."
    ),
    "en": (
        "As DeepFlow AI, analyze this user's data and provide personalized insights and recommendations:"
        "\n\n{summary}\n\nPlease provide:\n"
        "1. 📊 A brief productivity analysis\n"
        "2. 🚀 Three specific recommendations for improvement\n"
        "3. 💪 A motivational insight based on their patterns\n\n"
        "Use Markdown with clear sections."
    ),
    "es": (
        "Como DeepFlow AI, analice los datos de este usuario y proporcione recomendaciones personalizadas:"
        "\n\n{summary}\n\nPor favor proporcione:\n"
        "1. 📊 Un breve análisis de productividad\n"
        "2. 🚀 Tres recomendaciones específicas para mejorar\n"
        "3. 💪 Una perspectiva motivadora basada en sus patrones\n\n"
        "Use formato Markdown con secciones claras."
    ),
    "de": (
        "Als DeepFlow AI analysieren Sie die Daten dieses Benutzers und geben personalisierte Empfehlungen:"
        "\n\n{summary}\n\nBitte geben Sie:\n"
        "1. 📊 Eine kurze Produktivitätsanalyse\n"
        "2. 🚀 Drei spezifische Verbesserungsempfehlungen\n"
        "3. 💪 Eine motivierende Einsicht basierend auf ihren Mustern\n\n"
        "Verwenden Sie Markdown mit klaren Abschnitten."
    ),
}


def resolve_language(language: Optional[str]) -> str:
    return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def build_analysis_prompt(summary: Dict[str, Any], language: Optional[str]) -> PromptPair:
    template = _ANALYSIS_TEMPLATES[resolve_language(language)]
    system_prompt = "You are DeepFlow AI, a supportive productivity coach. Reply in Markdown."
    return system_prompt, template.format(summary=_summary_text(summary))


# Insight prompts

def _insight_metrics(context: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    tasks = context.get("tasks", [])
    focus = context.get("focusSessions", [])
    journal = context.get("journalEntries", [])

    hours = Counter()
    completed_today = 0
    for task in tasks:
        completed_at = task.get("completed_at")
        if not task.get("completed") or not completed_at:
            continue
        moment = datetime.fromisoformat(completed_at)
        hours[moment.hour] += 1
        if moment.date() == now.date():
            completed_today += 1

    peak_hours = [hour for hour, _ in hours.most_common(3)]
    if not peak_hours:
        productivity_type = "unknown"
    elif peak_hours[0] < 12:
        productivity_type = "early bird"
    elif peak_hours[0] < 17:
        productivity_type = "afternoon"
    else:
        productivity_type = "night owl"

    durations = [f.get("duration") or 0 for f in focus]
    return {
        "hour": now.hour,
        "weekday": now.strftime("%A"),
        "completed_today": completed_today,
        "pending_high": [t for t in tasks if not t.get("completed") and t.get("priority") == "high"],
        "recent_moods": [j["mood"] for j in journal[:5] if j.get("mood")],
        "avg_focus": round(sum(durations) / len(durations)) if durations else 0,
        "long_sessions": [f for f in focus if (f.get("duration") or 0) > 45],
        "peak_hours": peak_hours,
        "productivity_type": productivity_type,
    }


def _bullets(lines: Iterable[str], empty: str = "none") -> str:
    rendered = [f"- {line}" for line in lines]
    return "\n".join(rendered) or empty


_INSIGHT_SYSTEM = {
    "daily_briefing": (
        "You are DeepFlow's personal coach. Write a personalised morning briefing that crosses all of "
        "the user's data, with concrete numbers and 3-4 priority actions, under 200 words.\n"
        'Return JSON: {"greeting", "productivity_type", "mood_insight", "priority_tasks": [], '
        '"active_quest": {"title", "progress", "message"}, "daily_tip", "motivation_message"}'
    ),
    "smart_prioritization": (
        "You are a time-management expert. Order today's tasks using the user's chronobiology, "
        "recent mood, goal impact and deadlines.\n"
        'Return JSON: {"optimized_order": [{"task_id", "title", "suggested_time", "reason", '
        '"energy_match"}], "blocked_slots": [], "productivity_prediction"}'
    ),
    "cross_insights": (
        "You are a behavioural data analyst. Find correlations between habits, mood, focus and "
        "task completion. Produce 4-6 insights of type correlation, pattern, prediction or opportunity.\n"
        'Return JSON: {"insights": [{"type", "icon", "title", "description", "priority", "action"}], '
        '"summary"}'
    ),
    "goal_prediction": (
        "You predict goal success from progress, time left, recent velocity and habit consistency.\n"
        'Return JSON: {"predictions": [{"goal_id", "title", "current_progress", "success_probability", '
        '"velocity", "risk_level", "insight", "recommendation"}]}'
    ),
    "habit_dna": (
        "You build a habit DNA profile: strengths per category, foundation habits and weak spots.\n"
        'Return JSON: {"dna_profile": {"dominant_trait", "categories": [{"name", "icon", "score", '
        '"status", "habits_count"}], "foundation_habit": {"name", "impact"}, '
        '"weak_spot": {"category", "suggestion"}, "insight"}}'
    ),
    "flow_prediction": (
        "You predict flow windows from long focus sessions, time of day and mood.\n"
        'Return JSON: {"flow_prediction": {"probability", "optimal_window": {"start", "end", "day"}, '
        '"conditions": [], "suggested_task", "insight", "tips": []}}'
    ),
    "mood_analysis": (
        "You analyse how mood relates to productivity and give actionable advice.\n"
        'Return JSON: {"mood_analysis": {"current_trend", "best_mood_for_productivity", '
        '"correlations": [{"observation", "percentage", "actionable_insight"}], "recommendations": [], '
        '"weekly_pattern": {"best_day", "challenging_day"}}}'
    ),
}


def _insight_user_prompt(kind: str, context: Dict[str, Any], metrics: Dict[str, Any], now: datetime) -> str:
    tasks = context.get("tasks", [])
    habits = context.get("habits", [])
    goals = context.get("goals", [])
    journal = context.get("journalEntries", [])
    focus = context.get("focusSessions", [])
    quests = context.get("quests", [])
    profile = context.get("userProfile", {})
    chrono = (
        f"Productivity type: {metrics['productivity_type']}; "
        f"peak hours: {', '.join(f'{h}h' for h in metrics['peak_hours']) or 'unknown'}; "
        f"now: {metrics['hour']}h on {metrics['weekday']}"
    )
    moods = ", ".join(metrics["recent_moods"]) or "not recorded"

    if kind == "daily_briefing":
        quest_lines = ", ".join(
            "{} ({}/{})".format(q["title"], q["current_progress"], q["target_value"]) for q in quests
        )
        return (
            f"Generate the morning briefing.\n{chrono}\n"
            f"High priority pending tasks: {len(metrics['pending_high'])} "
            f"({', '.join(t['title'] for t in metrics['pending_high'][:3])})\n"
            f"Tasks completed today: {metrics['completed_today']}\n"
            f"Recent moods: {moods}\n"
            f"Average focus: {metrics['avg_focus']} minutes\n"
            f"Active habits: {len(habits)}\n"
            f"Active quests: {quest_lines or 'none'}\n"
            f"Level {profile.get('level', 1)}, {profile.get('experience_points', 0)} XP"
        )
    if kind == "smart_prioritization":
        open_tasks = [t for t in tasks if not t.get("completed")][:10]
        return (
            f"Order today's tasks.\n{chrono}\nRecent mood: {metrics['recent_moods'][0] if metrics['recent_moods'] else 'neutral'}\n"
            "Tasks:\n"
            + _bullets(f"[{t['priority']}] {t['title']} (id {t['id']}, due {t.get('due_date') or 'none'})" for t in open_tasks)
            + "\nGoals in progress:\n"
            + _bullets(f"{g['title']} ({g['progress']}%)" for g in goals if not g.get("completed"))
        )
    if kind == "cross_insights":
        per_day = Counter(c["completed_date"] for c in context.get("habitCompletions", []))
        return (
            f"Cross-analyse the user's data.\nHabits ({len(habits)}):\n"
            + _bullets(f"{h['title']} (streak {h['streak']}, category {h.get('category') or 'other'})" for h in habits)
            + "\nHabit completions per day:\n"
            + _bullets(f"{day}: {count}" for day, count in sorted(per_day.items(), reverse=True)[:10])
            + f"\nRecent moods: {moods}\n"
            f"Focus: {len(focus)} sessions, average {metrics['avg_focus']} min, "
            f"{len(metrics['long_sessions'])} longer than 45 min\n"
            f"Tasks: {sum(1 for t in tasks if t.get('completed'))} completed, "
            f"{sum(1 for t in tasks if not t.get('completed'))} pending\n{chrono}"
        )
    if kind == "goal_prediction":
        week_ago = now - timedelta(days=7)
        velocity = sum(
            1
            for t in tasks
            if t.get("completed") and t.get("completed_at") and datetime.fromisoformat(t["completed_at"]) > week_ago
        )
        lines = []
        for g in goals:
            if g.get("completed"):
                continue
            if g.get("target_date"):
                days_left = (date.fromisoformat(g["target_date"]) - now.date()).days
                deadline = f"{days_left} days left"
            else:
                deadline = "no deadline"
            lines.append(f"{g['title']} (id {g['id']}): {g['progress']}%, {deadline}")
        return (
            "Predict goal success.\nGoals:\n"
            + _bullets(lines)
            + f"\nTasks completed in the last 7 days: {velocity}\nHabits:\n"
            + _bullets(f"{h['title']} (streak {h['streak']})" for h in habits)
        )
    if kind == "habit_dna":
        counts = Counter(c["habit_id"] for c in context.get("habitCompletions", []))
        return (
            "Build the habit DNA profile.\nHabits:\n"
            + _bullets(
                f"{h['title']} (category {h.get('category') or 'other'}, streak {h['streak']}, "
                f"frequency {h['frequency']}, {counts.get(h['id'], 0)} recent completions)"
                for h in habits
            )
            + f"\nFocus: {len(focus)} sessions, average {metrics['avg_focus']} min"
        )
    if kind == "flow_prediction":
        return (
            "Predict today's flow windows.\nFocus history:\n"
            + _bullets(f"{f.get('started_at') or 'unknown'}: {f['duration']} min" for f in focus)
            + "\nLong sessions:\n"
            + _bullets(f"{f.get('started_at') or 'unknown'}: {f['duration']} min" for f in metrics["long_sessions"][:10])
            + f"\n{chrono}\nRecent moods: {moods}"
        )
    # mood_analysis
    mood_counts = Counter(j["mood"] for j in journal if j.get("mood"))
    return (
        "Analyse mood against productivity.\nJournal:\n"
        + _bullets(f"{j['created_at']}: mood {j.get('mood') or 'n/a'}" for j in journal)
        + "\nMood distribution: "
        + (", ".join(f"{mood}: {count}" for mood, count in mood_counts.items()) or "none")
        + f"\nTasks completed: {sum(1 for t in tasks if t.get('completed'))}\n{chrono}"
    )


def build_insight_prompt(kind: str, context: Dict[str, Any], now: Optional[datetime] = None) -> PromptPair:
    if kind not in INSIGHT_KINDS:
        raise ValueError(f"Unknown insight type: {kind}")
    current = utc_now(now)
    metrics = _insight_metrics(context, current)
    return _INSIGHT_SYSTEM[kind], _insight_user_prompt(kind, context, metrics, current)


def language_for(db: Session, user_id: UUID) -> str:
    return resolve_language(ensure_player_profile(db, user_id).user.language)


def recent_records(db: Session, user_id: UUID) -> Dict[str, List[Any]]:
    """Rows used by the activity analysis."""
    return {
        "tasks": db.query(Task).filter(Task.user_id == user_id).all(),
        "habits": db.query(Habit).filter(Habit.user_id == user_id).all(),
        "goals": db.query(Goal).filter(Goal.user_id == user_id).all(),
        "focus_sessions": (
            db.query(FocusSession)
            .filter(FocusSession.user_id == user_id)
            .order_by(desc(FocusSession.created_at))
            .limit(50)
            .all()
        ),
        "journal_entries": (
            db.query(JournalEntry)
            .filter(JournalEntry.user_id == user_id)
            .order_by(desc(JournalEntry.created_at))
            .limit(20)
            .all()
        ),
    }
