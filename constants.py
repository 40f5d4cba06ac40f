"""
=============================================================================
CONSTANTS.PY — Reference tables
=============================================================================
Static data the engines read but never modify:
  - Habit suggestions (also the templates used for battles)
  - Badge definitions
  - Weekly mini-challenge templates
  - Points / streak / battle configuration
  - Coach tips and quotes

Earning a badge = copying its definition into the profile with a timestamp.
The definitions themselves are never touched.
"""


# =============================================================================
# ===================== HABIT SUGGESTIONS =====================================
# =============================================================================

HABIT_SUGGESTIONS = [
    {
        "name": "Quit Smoking",
        "description": "Reduce cigarette consumption gradually",
        "category": "health",
        "icon": "🚭",
        "is_reduce_habit": True,
        "target_options": [
            {"label": "10 per day", "value": 10},
            {"label": "5 per day", "value": 5},
            {"label": "3 per day", "value": 3},
            {"label": "1 per day", "value": 1},
            {"label": "No smoking", "value": 0},
        ],
        "default_target": 5,
        "target_unit": "cigarettes",
        "suggested_replacements": ["Drink water", "Chew gum", "Take deep breaths", "Go for a walk", "Eat a healthy snack"],
    },
    {
        "name": "Drink Water",
        "description": "Stay hydrated throughout the day",
        "category": "health",
        "icon": "💧",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "4 glasses", "value": 4},
            {"label": "6 glasses", "value": 6},
            {"label": "8 glasses", "value": 8},
            {"label": "10 glasses", "value": 10},
        ],
        "default_target": 8,
        "target_unit": "glasses",
        "suggested_replacements": ["Set hourly reminders", "Keep water bottle nearby", "Add lemon for taste"],
    },
    {
        "name": "Exercise",
        "description": "Stay active and healthy",
        "category": "fitness",
        "icon": "🏃",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "15 minutes", "value": 15},
            {"label": "30 minutes", "value": 30},
            {"label": "45 minutes", "value": 45},
            {"label": "60 minutes", "value": 60},
        ],
        "default_target": 30,
        "target_unit": "minutes",
        "suggested_replacements": ["Do stretching", "Take stairs", "Walk during calls"],
    },
    {
        "name": "Read Books",
        "description": "Expand your knowledge daily",
        "category": "learning",
        "icon": "📚",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "10 pages", "value": 10},
            {"label": "20 pages", "value": 20},
            {"label": "30 pages", "value": 30},
            {"label": "1 chapter", "value": 25},
        ],
        "default_target": 20,
        "target_unit": "pages",
        "suggested_replacements": ["Listen to audiobook", "Read article", "Watch educational video"],
    },
    {
        "name": "Meditate",
        "description": "Practice mindfulness and calm",
        "category": "mindfulness",
        "icon": "🧘",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "5 minutes", "value": 5},
            {"label": "10 minutes", "value": 10},
            {"label": "15 minutes", "value": 15},
            {"label": "20 minutes", "value": 20},
        ],
        "default_target": 10,
        "target_unit": "minutes",
        "suggested_replacements": ["Deep breathing", "Mindful walking", "Body scan"],
    },
    {
        "name": "Reduce Screen Time",
        "description": "Limit phone and computer usage",
        "category": "productivity",
        "icon": "📱",
        "is_reduce_habit": True,
        "target_options": [
            {"label": "4 hours max", "value": 4},
            {"label": "3 hours max", "value": 3},
            {"label": "2 hours max", "value": 2},
            {"label": "1 hour max", "value": 1},
        ],
        "default_target": 3,
        "target_unit": "hours",
        "suggested_replacements": ["Read a book", "Go outside", "Talk to someone", "Do a hobby"],
    },
    {
        "name": "Sleep Early",
        "description": "Get better sleep by going to bed on time",
        "category": "health",
        "icon": "😴",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "By 11 PM", "value": 23},
            {"label": "By 10 PM", "value": 22},
            {"label": "By 10:30 PM", "value": 22.5},
            {"label": "By 9:30 PM", "value": 21.5},
        ],
        "default_target": 22,
        "target_unit": "PM",
        "suggested_replacements": ["No screens 1hr before", "Read instead", "Warm shower"],
    },
    {
        "name": "Save Money",
        "description": "Build financial discipline",
        "category": "finance",
        "icon": "💰",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "$5 per day", "value": 5},
            {"label": "$10 per day", "value": 10},
            {"label": "$20 per day", "value": 20},
            {"label": "$50 per day", "value": 50},
        ],
        "default_target": 10,
        "target_unit": "dollars",
        "suggested_replacements": ["Skip coffee out", "Bring lunch", "Use coupons"],
    },
    {
        "name": "Practice Gratitude",
        "description": "Write things you are grateful for",
        "category": "mindfulness",
        "icon": "🙏",
        "is_reduce_habit": False,
        "target_options": [
            {"label": "1 thing", "value": 1},
            {"label": "3 things", "value": 3},
            {"label": "5 things", "value": 5},
        ],
        "default_target": 3,
        "target_unit": "things",
        "suggested_replacements": ["Think about positives", "Call someone you appreciate"],
    },
    {
        "name": "Reduce Junk Food",
        "description": "Eat healthier by limiting junk food",
        "category": "health",
        "icon": "🍔",
        "is_reduce_habit": True,
        "target_options": [
            {"label": "2 times max", "value": 2},
            {"label": "1 time max", "value": 1},
            {"label": "No junk food", "value": 0},
        ],
        "default_target": 1,
        "target_unit": "times",
        "suggested_replacements": ["Eat fruits", "Drink smoothie", "Healthy snack"],
    },
]


def find_suggestion(name: str):
    """Suggestion with exactly this name, or None"""
    return next((s for s in HABIT_SUGGESTIONS if s["name"] == name), None)


# =============================================================================
# ===================== BADGES ================================================
# =============================================================================

BADGE_DEFINITIONS = [
    # ── Streaks ──
    {"id": "streak-3", "name": "Getting Started", "description": "3-day streak", "icon": "🌱", "type": "streak", "requirement": 3},
    {"id": "streak-7", "name": "One Week Strong", "description": "7-day streak", "icon": "🔥", "type": "streak", "requirement": 7},
    {"id": "streak-14", "name": "Two Week Warrior", "description": "14-day streak", "icon": "⚡", "type": "streak", "requirement": 14},
    {"id": "streak-30", "name": "Monthly Master", "description": "30-day streak", "icon": "🏆", "type": "streak", "requirement": 30},
    {"id": "streak-60", "name": "Habit Hero", "description": "60-day streak", "icon": "👑", "type": "streak", "requirement": 60},
    {"id": "streak-100", "name": "Century Champion", "description": "100-day streak", "icon": "💎", "type": "streak", "requirement": 100},

    # ── Points ──
    {"id": "points-100", "name": "Point Collector", "description": "Earn 100 points", "icon": "⭐", "type": "points", "requirement": 100},
    {"id": "points-500", "name": "Point Hunter", "description": "Earn 500 points", "icon": "🌟", "type": "points", "requirement": 500},
    {"id": "points-1000", "name": "Point Master", "description": "Earn 1000 points", "icon": "✨", "type": "points", "requirement": 1000},
    {"id": "points-5000", "name": "Point Legend", "description": "Earn 5000 points", "icon": "💫", "type": "points", "requirement": 5000},

    # ── Habits ──
    {"id": "habits-1", "name": "First Step", "description": "Create first habit", "icon": "🎯", "type": "habits", "requirement": 1},
    {"id": "habits-3", "name": "Triple Threat", "description": "Track 3 habits", "icon": "🎪", "type": "habits", "requirement": 3},
    {"id": "habits-5", "name": "Habit Collector", "description": "Track 5 habits", "icon": "🎨", "type": "habits", "requirement": 5},

    # ── Specials ──
    {"id": "perfect-week", "name": "Perfect Week", "description": "Complete all habits for 7 days", "icon": "🌈", "type": "perfect-week", "requirement": 7},
    {"id": "early-bird", "name": "Early Bird", "description": "Complete habit before time window", "icon": "🐦", "type": "early-bird", "requirement": 1},
    {"id": "comeback", "name": "Comeback Kid", "description": "Return after 3+ days break", "icon": "💪", "type": "comeback", "requirement": 3},
    {"id": "challenger", "name": "Challenge Accepted", "description": "Complete a mini challenge", "icon": "🎖️", "type": "challenger", "requirement": 1},
]


def find_badge_definition(badge_id: str):
    return next((b for b in BADGE_DEFINITIONS if b["id"] == badge_id), None)


# =============================================================================
# ===================== MINI CHALLENGES =======================================
# =============================================================================
# Three of these are drawn at random every week.

CHALLENGES_PER_WEEK = 3
CHALLENGE_WINDOW_DAYS = 7

DEFAULT_CHALLENGES = [
    {"title": "3-Day Streak", "description": "Maintain any habit for 3 consecutive days", "type": "streak", "target_value": 3, "reward": 50},
    {"title": "Perfect Day", "description": "Complete all your habits in a single day", "type": "perfect-day", "target_value": 1, "reward": 30},
    {"title": "Point Rush", "description": "Earn 50 points today", "type": "points", "target_value": 50, "reward": 25},
    {"title": "Early Achiever", "description": "Complete a habit before its time window", "type": "early", "target_value": 1, "reward": 20},
    {"title": "Replacement Pro", "description": "Do replacement actions 5 times", "type": "replacement", "target_value": 5, "reward": 40},
]


# =============================================================================
# ===================== POINTS & STREAKS ======================================
# =============================================================================

POINTS_CONFIG = {
    "base_complete": 10,       # target met
    "replacement_bonus": 5,    # replacement action done
    "streak_multiplier": 0.5,  # per streak day, floored (5-day streak → +2)
    "mood_bonus": {
        "Happy": 2,
        "Neutral": 0,
        "Sad": 3,        # pushing through a hard day pays more
        "Stressed": 3,
    },
    "early_bonus": 5,          # before the habit's time window
    "perfect_day_bonus": 20,   # every active habit done today
}

FREEZE_COOLDOWN_DAYS = 7
COMEBACK_BREAK_DAYS = 3
PERFECT_WEEK_DAYS = 7


# =============================================================================
# ===================== USERS & BATTLES =======================================
# =============================================================================

DEFAULT_AVATARS = ["👤", "👨", "👩", "🧑", "👦", "👧", "🦸", "🧙", "🥷", "👻"]
DEFAULT_COLORS = ["#667eea", "#f093fb", "#4facfe", "#43e97b", "#fa709a", "#fee140", "#30cfd0", "#a8edea"]

BATTLE_BONUS_POINTS = 25
BATTLE_CUTOFF_HOUR = 22
# Reduce habits race differently ("who reduced more"), so only this one
# joins the build habits in the random battle pool
BATTLE_REDUCE_EXCEPTION = "Reduce Screen Time"


# =============================================================================
# ===================== COACH =================================================
# =============================================================================

COACH_TIPS = {
    "streak-broken": [
        "Don't worry! Everyone slips sometimes. The key is to start again today.",
        "One bad day doesn't erase your progress. Get back on track!",
        "Remember why you started. Your past effort still counts!",
    ],
    "new-habit": [
        "Start small! It's better to do a little consistently than a lot occasionally.",
        "Focus on showing up, not being perfect.",
        "Link this habit to something you already do daily.",
    ],
    "streak-milestone": [
        "Amazing work! You're building real momentum.",
        "Your consistency is paying off. Keep going!",
        "You've proven you can do this. The next milestone awaits!",
    ],
    "mood-stressed": [
        "Take it easy today. Even small progress counts.",
        "Consider your replacement action to destress.",
        "Remember: habits help reduce stress over time.",
    ],
    "mood-sad": [
        "It's okay to feel this way. Be gentle with yourself.",
        "Completing a small habit might boost your mood.",
        "Your habits are there to support you, not pressure you.",
    ],
    "mood-happy": [
        "Great mood! Perfect time to crush your habits!",
        "Use this positive energy to build momentum.",
        "Happy days are great for tackling tough habits.",
    ],
    "time-window-active": [
        "Your habit time window is active! Time to focus.",
        "This is your scheduled habit time. You've got this!",
        "Use this dedicated time wisely.",
    ],
    "almost-there": [
        "You're so close to your target! Just a little more.",
        "Almost done for today. Finish strong!",
        "One more push and you'll hit your goal.",
    ],
}

REPLACEMENT_ACTIVITIES = {
    "calming": [
        "Take 5 deep breaths slowly",
        "Drink a glass of cold water",
        "Step outside for fresh air",
        "Listen to calming music for 5 minutes",
        "Do a 2-minute meditation",
    ],
    "productive": [
        "Read 5 pages of a book",
        "Organize your desk or room",
        "Write down 3 things you're grateful for",
        "Plan tomorrow's tasks",
    ],
    "physical": [
        "Do 10 jumping jacks",
        "Take a 5-minute walk",
        "Do 10 pushups or squats",
        "Dance to one song",
    ],
    "creative": [
        "Doodle or sketch something",
        "Write a short poem or note",
        "Take a photo of something beautiful",
    ],
}

DEFAULT_QUOTES = [
    ("Discipline is the bridge between goals and accomplishment.", "Jim Rohn"),
    ("It's not about being perfect, it's about being consistent.", None),
    ("Habits are the compound interest of self-improvement.", "James Clear"),
    ("Success is the sum of small efforts, repeated day in and day out.", "Robert Collier"),
    ("Don't count the days, make the days count.", "Muhammad Ali"),
    ("We are what we repeatedly do. Excellence, then, is not an act, but a habit.", "Aristotle"),
    ("A journey of a thousand miles begins with a single step.", "Lao Tzu"),
    ("Progress, not perfection.", None),
    ("Every action you take is a vote for the person you wish to become.", "James Clear"),
]
