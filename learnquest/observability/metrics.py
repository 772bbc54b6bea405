"""
Prometheus metrics definitions for learnquest.

Organized by category:
- HTTP/API metrics: request counts and errors
- Progression metrics: XP, streaks, quests, achievements, mystery boxes
- AI coach metrics: gateway calls and latency
- Database metrics: transaction outcomes

Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import logging
from prometheus_client import Counter, Gauge, Histogram

logger = logging.getLogger(__name__)

# =============================================================================
# HTTP/API Metrics
# =============================================================================

http_requests_total = Counter(
    "learnquest_http_requests_total",
    "Total HTTP requests handled",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "learnquest_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

http_requests_in_progress = Gauge(
    "learnquest_http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
)

errors_total = Counter(
    "learnquest_errors_total",
    "Total errors by type and component",
    ["error_type", "component"],  # component: api/database/coach
)

# =============================================================================
# Progression Metrics
# =============================================================================

xp_awarded_total = Counter(
    "learnquest_xp_awarded_total",
    "Total XP credited to profiles",
    ["source"],  # source: quest/mystery_box
)

level_ups_total = Counter(
    "learnquest_level_ups_total",
    "Total level-ups",
)

posts_created_total = Counter(
    "learnquest_posts_created_total",
    "Total learning posts shared",
)

streak_events_total = Counter(
    "learnquest_streak_events_total",
    "Streak outcomes on qualifying posts",
    ["outcome"],  # started/same_day/continued/reset
)

quests_completed_total = Counter(
    "learnquest_quests_completed_total",
    "Total quests completed",
    ["difficulty"],
)

achievements_unlocked_total = Counter(
    "learnquest_achievements_unlocked_total",
    "Total achievements unlocked",
    ["category"],
)

mystery_boxes_opened_total = Counter(
    "learnquest_mystery_boxes_opened_total",
    "Total mystery boxes opened",
    ["rarity", "reward_type"],
)

goal_updates_total = Counter(
    "learnquest_goal_updates_total",
    "Goal changes by goal type and action",
    ["goal_type", "action"],
)

motivation_assessments_total = Counter(
    "learnquest_motivation_assessments_total",
    "Total motivation self-assessments submitted",
)

# =============================================================================
# AI Coach Metrics
# =============================================================================

coach_requests_total = Counter(
    "learnquest_coach_requests_total",
    "Total AI coach relay requests",
    ["request_type", "status"],  # status: success/rate_limited/payment_required/error
)

coach_request_duration_seconds = Histogram(
    "learnquest_coach_request_duration_seconds",
    "AI gateway round-trip time in seconds",
    ["request_type"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

# =============================================================================
# Database Metrics
# =============================================================================

db_transactions_total = Counter(
    "learnquest_db_transactions_total",
    "Total multi-statement database transactions",
    ["operation", "status"],  # status: committed/rolled_back
)

logger.debug("Prometheus metrics registered")
