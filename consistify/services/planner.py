# consistify/services/planner.py
"""
Day planner.

Turns a goal draft into exactly ``total_days`` day descriptors. The LLM is
only a source of topic names; anything it gets wrong (unreachable, bad
JSON, too few days) falls back to the keyword topic library, so goal
creation never fails because of the planner.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from consistify.config import settings
from consistify.schemas.goal import DayDescriptor, PlanRequest, TimelineAdvice
from consistify.services.resources import resources_for_task

logger = logging.getLogger(__name__)

MINIMUM_DAYS = {
    "learning": 3,
    "project": 3,
    "health": 3,
    "exam": 3,
    "habit": 3,
}

TOPIC_LIBRARY: Dict[str, List[str]] = {
    # Programming
    "python": ["Variables and Data Types", "Conditionals and If Statements", "Loops (For and While)", "Functions and Parameters", "Lists and Arrays", "Dictionaries and Sets", "String Manipulation", "File I/O Operations", "Error Handling and Exceptions", "Object-Oriented Programming Basics", "Classes and Objects", "Inheritance and Polymorphism", "Modules and Packages", "List Comprehensions", "Lambda Functions", "Decorators", "Generators", "Working with APIs", "Data Analysis with Pandas", "Building a Complete Project"],
    "javascript": ["Variables (let, const, var)", "Data Types and Operators", "Conditionals and Comparison", "Loops (for, while, forEach)", "Functions and Arrow Functions", "Arrays and Array Methods", "Objects and Object Methods", "DOM Manipulation Basics", "Event Listeners and Handling", "ES6 Features", "Promises and Async/Await", "Fetch API and AJAX", "Local Storage", "Array Destructuring", "Spread and Rest Operators", "Modules (Import/Export)", "Error Handling", "Working with JSON", "Building a Web App", "Final Project"],
    "react": ["JSX and Components", "Props and State", "Event Handling", "Conditional Rendering", "Lists and Keys", "Forms and Controlled Components", "Lifecycle Methods", "Hooks - useState", "Hooks - useEffect", "Hooks - useContext", "Custom Hooks", "React Router Basics", "Navigation and Links", "API Integration", "State Management", "Component Composition", "Performance Optimization", "Testing React Components", "Deployment", "Full Stack Project"],
    # Music
    "singing": ["Breathing Techniques and Posture", "Vocal Warmups and Scales", "Pitch Control and Ear Training", "Tone Quality and Resonance", "Basic Melodies and Simple Songs", "Vocal Range Expansion", "Articulation and Diction", "Rhythm and Timing", "Dynamics (Soft and Loud)", "Vibrato Technique", "Song Interpretation", "Learning Your First Full Song", "Performance Techniques", "Microphone Technique", "Harmony and Backing Vocals", "Genre-Specific Techniques", "Recording Basics", "Stage Presence", "Repertoire Building", "Live Performance Practice"],
    "guitar": ["Parts of Guitar and Tuning", "Basic Chords (G, C, D)", "Chord Changes and Transitions", "Strumming Patterns", "Basic Fingerpicking", "Reading Chord Charts", "Power Chords", "Barre Chords Basics", "Minor Chords", "Rhythm Patterns", "Basic Scales", "Learning Your First Song", "Fingerstyle Techniques", "Hammer-ons and Pull-offs", "Slides and Bends", "Palm Muting", "Music Theory Basics", "Improvisation", "Song Writing Basics", "Performance Practice"],
    "piano": ["Piano Keys and Posture", "Right Hand Position and C Major Scale", "Left Hand Bass Notes", "Both Hands Together", "Reading Sheet Music Basics", "Basic Chords (C, F, G)", "Chord Progressions", "Rhythm and Timing", "Dynamics and Expression", "Pedal Technique", "Minor Scales", "Arpeggios", "Hand Independence", "Sight Reading", "Your First Song", "Music Theory Fundamentals", "Advanced Chords", "Improvisation", "Performance Techniques", "Recital Preparation"],
    # Design
    "photoshop": ["Interface and Workspace", "Selection Tools", "Layers and Layer Masks", "Basic Adjustments", "Brushes and Painting", "Text and Typography", "Color Correction", "Retouching Techniques", "Filters and Effects", "Pen Tool Mastery", "Compositing Basics", "Smart Objects", "Adjustment Layers", "Blending Modes", "Photo Manipulation", "Creating Graphics", "Working with RAW", "Exporting for Web", "Advanced Techniques", "Portfolio Project"],
    "drawing": ["Basic Shapes and Lines", "Shading Techniques", "Perspective Basics", "Proportions and Anatomy", "Light and Shadow", "Textures", "Facial Features", "Eyes and Expression", "Hands and Feet", "Full Body Proportions", "Dynamic Poses", "Clothing and Folds", "Hair Rendering", "Backgrounds", "Composition", "Color Theory", "Digital vs Traditional", "Character Design", "Style Development", "Final Artwork"],
    # Fitness
    "gym": ["Gym Equipment Tour", "Proper Form Basics", "Chest Exercises", "Back Exercises", "Shoulder Exercises", "Arm Exercises", "Leg Exercises", "Core Strengthening", "Compound Movements", "Progressive Overload", "Workout Split Basics", "Cardio Integration", "Rest and Recovery", "Nutrition Basics", "Tracking Progress", "Advanced Techniques", "Injury Prevention", "Flexibility Work", "Goal Setting", "Custom Workout Plan"],
    "yoga": ["Basic Breathing (Pranayama)", "Mountain Pose and Alignment", "Sun Salutation A", "Standing Poses", "Balancing Poses", "Forward Folds", "Backbends", "Twists", "Hip Openers", "Seated Poses", "Inversions Basics", "Core Strengthening", "Arm Balances", "Restorative Poses", "Meditation Basics", "Flexibility Flow", "Strength Building", "Mind-Body Connection", "Full Practice Sequence", "Personal Practice Development"],
    # Business & Tech
    "powerbi": ["Power BI Interface and Setup", "Importing Data Sources", "Data Transformation Basics", "Creating Your First Visual", "Table and Matrix Visuals", "Chart Types and Usage", "Filters and Slicers", "DAX Basics", "Calculated Columns", "Measures and KPIs", "Relationships Between Tables", "Data Modeling", "Time Intelligence", "Advanced DAX Functions", "Dashboard Design Principles", "Interactive Reports", "Publishing and Sharing", "Row Level Security", "Performance Optimization", "Complete Dashboard Project"],
    "excel": ["Interface and Basic Formulas", "Cell References", "SUM, AVERAGE, COUNT", "IF Statements", "VLOOKUP and HLOOKUP", "Data Sorting and Filtering", "Conditional Formatting", "Charts and Graphs", "Pivot Tables Basics", "Advanced Pivot Tables", "Data Validation", "INDEX and MATCH", "Text Functions", "Date and Time Functions", "SUMIF and COUNTIF", "Array Formulas", "Macros Basics", "Data Analysis", "Dashboard Creation", "Real-World Project"],
    # Languages
    "spanish": ["Basic Greetings and Introductions", "Numbers and Counting", "Present Tense Regular Verbs", "Common Nouns and Articles", "Adjectives and Descriptions", "Question Words", "Irregular Verbs (Ser, Estar)", "Family and Relationships", "Food and Restaurants", "Daily Routine Vocabulary", "Past Tense Basics", "Future Tense", "Directions and Locations", "Shopping and Money", "Weather and Seasons", "Hobbies and Free Time", "Making Plans", "Conversation Practice", "Cultural Topics", "Real Conversations"],
    # Other
    "cooking": ["Knife Skills and Safety", "Basic Cutting Techniques", "Sautéing Basics", "Boiling and Blanching", "Roasting Vegetables", "Cooking Proteins", "Basic Sauces", "Seasoning and Flavoring", "Pasta from Scratch", "Rice Varieties", "Baking Basics", "Bread Making", "Eggs - All Methods", "Soups and Stocks", "Meal Prep Basics", "International Cuisines", "Desserts", "Plating and Presentation", "Menu Planning", "Full Course Meal"],
}

SYSTEM_PROMPT = """You are an expert learning curriculum designer creating calm, achievable daily topics.

CORE PRINCIPLES:
1. One focused topic per day - no overwhelm
2. Topics build progressively from simple to intermediate to advanced
3. Language is calm and encouraging, never pressuring
4. Respect the user's pace - fewer days means broad topics, more days means granular detail

OUTPUT REQUIREMENTS:
- Each day = ONE specific, focused topic
- Topics must be concrete, not vague ("Variables and Data Types", not "Basics")
- No anxiety-inducing language, no rush, no pressure

FORBIDDEN: "Master", "Cram", "Intensive", "Speed through", competitive language, guilt-inducing terms."""


@dataclass
class Phase:
    name: str
    start_day: int
    end_day: int
    focus: str


def check_timeline(goal_type: str, total_days: int) -> TimelineAdvice:
    min_days = MINIMUM_DAYS.get(goal_type, 3)
    if total_days < min_days:
        return TimelineAdvice(
            is_rushed=True,
            suggested_days=min_days,
            message=f"Minimum {min_days} days recommended for this goal type to allow proper skill development.",
        )
    return TimelineAdvice(is_rushed=False, suggested_days=total_days, message="Timeline accepted.")


def calculate_phases(total_days: int) -> List[Phase]:
    if total_days <= 3:
        return [Phase("Phase 1: Foundation & Quick Wins", 1, total_days,
                      "Core concepts and first practical application")]

    if total_days <= 7:
        foundation_end = math.ceil(total_days * 0.4)
        return [
            Phase("Phase 1: Foundation", 1, foundation_end, "Core concepts and mental models"),
            Phase("Phase 2: Application", foundation_end + 1, total_days, "Hands-on practice and building"),
        ]

    if total_days <= 14:
        foundation_end = math.ceil(total_days * 0.25)
        core_end = math.ceil(total_days * 0.6)
        return [
            Phase("Phase 1: Foundation", 1, foundation_end, "Core concepts and terminology"),
            Phase("Phase 2: Core Skills", foundation_end + 1, core_end, "Essential techniques"),
            Phase("Phase 3: Project", core_end + 1, total_days, "Build something real"),
        ]

    foundation_end = math.ceil(total_days * 0.2)
    core_end = math.ceil(total_days * 0.5)
    application_end = math.ceil(total_days * 0.8)
    return [
        Phase("Phase 1: Foundation", 1, foundation_end, "Core concepts, terminology, mental models"),
        Phase("Phase 2: Core Skills", foundation_end + 1, core_end, "Essential techniques and patterns"),
        Phase("Phase 3: Application", core_end + 1, application_end, "Real-world problem solving"),
        Phase("Phase 4: Mastery Project", application_end + 1, total_days, "Independent creation"),
    ]


def phase_for_day(phases: List[Phase], day_number: int) -> str:
    for phase in phases:
        if phase.start_day <= day_number <= phase.end_day:
            return phase.name
    return "Phase 1: Foundation"


def skill_topics(skill_name: str, total_days: int) -> List[str]:
    """Keyword-matched topics (possibly fewer than total_days), or generic session labels."""
    skill = skill_name.lower()
    for keyword, topics in TOPIC_LIBRARY.items():
        if keyword in skill:
            return topics[:total_days]

    generic = []
    for i in range(1, total_days + 1):
        if i <= total_days * 0.3:
            stage = "Fundamentals"
        elif i <= total_days * 0.6:
            stage = "Intermediate Techniques"
        else:
            stage = "Advanced Application"
        generic.append(f"{stage} - Session {i}")
    return generic


def fallback_plan(request: PlanRequest) -> List[DayDescriptor]:
    phases = calculate_phases(request.total_days)
    topics = skill_topics(request.title, request.total_days)
    plan = []
    for day in range(1, request.total_days + 1):
        topic = topics[day - 1] if day <= len(topics) else f"{request.title} - Session {day}"
        plan.append(DayDescriptor(
            day_number=day,
            title=topic,
            description=f"Focus on {topic}",
            estimated_minutes=request.daily_minutes,
            phase=phase_for_day(phases, day),
            action_items=[f"Study {topic} ({request.daily_minutes} min)"],
            resources=resources_for_task(topic, request.title),
            skill_progression=f"Outcome: Completed {topic}",
        ))
    return plan


def build_user_prompt(request: PlanRequest) -> str:
    days = request.total_days
    if days <= 7:
        depth = "Keep topics broad since time is limited - cover essentials only"
    elif days <= 14:
        depth = "Balance breadth and depth - core concepts with some practice"
    else:
        depth = "Break topics into granular detail - comprehensive coverage"
    about = f' - {request.description}' if request.description else ""
    return (
        f'Create a {days}-day learning journey for: "{request.title}"{about}\n\n'
        f"REQUIREMENTS:\n"
        f"- Generate {days} unique daily topics\n"
        f"- Each topic should be specific and focused on ONE concept\n"
        f"- Topics progress naturally: beginner, intermediate, advanced\n"
        f"- {depth}\n"
        f"- Daily time available: {request.daily_minutes} minutes\n\n"
        f"Return ONLY a valid JSON array of objects shaped like\n"
        f'{{"dayNumber": 1, "topic": "Specific topic name", "estimatedMinutes": {request.daily_minutes}}}\n'
        f"for all {days} days. No markdown, no explanations, just the JSON array."
    )


_FENCE = re.compile(r"```(?:json)?\n?|\n?```")


def parse_topics(content: str, request: PlanRequest) -> List[DayDescriptor]:
    """
    Map the model's JSON array to descriptors.

    Raises ValueError when there are fewer than total_days usable entries.
    Extra entries are dropped and days are numbered by position.
    """
    items = json.loads(_FENCE.sub("", content).strip())
    if not isinstance(items, list):
        raise ValueError("planner response is not a JSON array")
    if len(items) < request.total_days:
        raise ValueError(f"planner returned {len(items)} of {request.total_days} days")

    phases = calculate_phases(request.total_days)
    plan = []
    for index, item in enumerate(items[: request.total_days]):
        if not isinstance(item, dict):
            raise ValueError(f"planner day {index + 1} is not an object")
        topic = str(item.get("topic") or item.get("title") or "").strip()
        if not topic:
            raise ValueError(f"planner day {index + 1} has no topic")
        day = index + 1
        minutes = item.get("estimatedMinutes")
        plan.append(DayDescriptor(
            day_number=day,
            title=topic,
            description="Today's focus",
            estimated_minutes=minutes if isinstance(minutes, int) and minutes > 0 else request.daily_minutes,
            phase=phase_for_day(phases, day),
            action_items=[f"Study and practice ({request.daily_minutes} min)"],
            resources=resources_for_task(topic, request.title),
            skill_progression=f"Can apply {topic}",
        ))
    return plan


class GoalPlanner:
    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    async def generate(self, request: PlanRequest) -> List[DayDescriptor]:
        if self.client is None:
            return fallback_plan(request)
        try:
            content = await self._complete(request)
            plan = parse_topics(content, request)
        except (openai.OpenAIError, ValueError) as e:
            logger.warning("Planner fell back to generated topics for %r: %s", request.title, e)
            return fallback_plan(request)
        logger.info("Planner produced %d days for %r", len(plan), request.title)
        return plan

    async def _complete(self, request: PlanRequest) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(request)},
            ],
            temperature=0.7,
            max_tokens=3000,
        )
        content: Any = response.choices[0].message.content
        if not content:
            raise ValueError("planner returned an empty message")
        return content


_planner: Optional[GoalPlanner] = None


def get_planner() -> GoalPlanner:
    global _planner
    if _planner is None:
        client = None
        if settings.planner_enabled:
            client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.PLANNER_TIMEOUT_SECONDS)
        _planner = GoalPlanner(client, settings.OPENAI_MODEL)
    return _planner
