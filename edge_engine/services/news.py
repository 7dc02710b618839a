"""
News impact and sentiment analyzer.

Scores a headline/description pair for its likely effect on betting lines:

* **Teams**: every alias from the alias table found in the text.
* **Keywords**: high-impact terms (injury, trade, rest, coaching,
  performance) found in the text.
* **Impact** (0–100): ``min(15 × keywords, 50)`` plus pattern bonuses
  (out + injury +30, trade +25, surgery +35, returns/cleared +20,
  suspended/ejected +15).
* **Sentiment**: positive vs negative word counts.

An article is *high impact* at 40 or above.  :meth:`AnalyzedArticle.to_news`
produces the :class:`~edge_engine.schemas.NewsArticle` consumed by the
News & Sentiment factor.

Terms match whole words or phrases in lower-cased text, so "out" does
not fire on "without" and "heat" does not fire on "cheat".
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Tuple

from edge_engine.schemas import NewsArticle

logger = logging.getLogger(__name__)

HIGH_IMPACT_KEYWORDS: Tuple[str, ...] = (
    # Injuries
    "injury", "injured", "out", "doubtful", "questionable", "day-to-day",
    "surgery", "mri", "torn", "sprain", "strain", "fracture", "concussion",
    "cleared", "return", "returns", "back", "healthy",
    # Roster
    "trade", "traded", "signs", "signed", "waived", "released", "acquired",
    "buyout", "contract", "extension",
    # Rest
    "rest", "resting", "load management", "sitting out", "dnp",
    # Coaching and discipline
    "fired", "suspended", "ejected", "fined", "coach",
    # Performance
    "dominating", "struggling", "slump", "hot streak", "cold streak",
    "career-high", "triple-double", "record",
)

POSITIVE_WORDS: Tuple[str, ...] = ("returns", "cleared", "healthy", "back", "dominating", "hot streak")
NEGATIVE_WORDS: Tuple[str, ...] = ("out", "injured", "surgery", "torn", "suspended", "struggling", "slump")

HIGH_IMPACT_THRESHOLD = 40

TEAM_ALIASES: Dict[str, str] = {
    "lakers": "LAL", "los angeles lakers": "LAL",
    "celtics": "BOS", "boston celtics": "BOS",
    "warriors": "GSW", "golden state warriors": "GSW", "golden state": "GSW",
    "heat": "MIA", "miami heat": "MIA",
    "nuggets": "DEN", "denver nuggets": "DEN",
    "suns": "PHX", "phoenix suns": "PHX",
    "bucks": "MIL", "milwaukee bucks": "MIL",
    "knicks": "NYK", "new york knicks": "NYK",
    "76ers": "PHI", "sixers": "PHI", "philadelphia 76ers": "PHI",
    "nets": "BKN", "brooklyn nets": "BKN",
    "bulls": "CHI", "chicago bulls": "CHI",
    "cavaliers": "CLE", "cavs": "CLE", "cleveland cavaliers": "CLE",
    "mavericks": "DAL", "mavs": "DAL", "dallas mavericks": "DAL",
    "clippers": "LAC", "la clippers": "LAC",
    "kings": "SAC", "sacramento kings": "SAC",
    "grizzlies": "MEM", "memphis grizzlies": "MEM",
    "pelicans": "NOP", "new orleans pelicans": "NOP",
    "hawks": "ATL", "atlanta hawks": "ATL",
    "raptors": "TOR", "toronto raptors": "TOR",
    "pacers": "IND", "indiana pacers": "IND",
    "hornets": "CHA", "charlotte hornets": "CHA",
    "wizards": "WAS", "washington wizards": "WAS",
    "magic": "ORL", "orlando magic": "ORL",
    "pistons": "DET", "detroit pistons": "DET",
    "thunder": "OKC", "oklahoma city thunder": "OKC",
    "jazz": "UTA", "utah jazz": "UTA",
    "timberwolves": "MIN", "wolves": "MIN", "minnesota timberwolves": "MIN",
    "trail blazers": "POR", "blazers": "POR", "portland trail blazers": "POR",
    "spurs": "SAS", "san antonio spurs": "SAS",
    "rockets": "HOU", "houston rockets": "HOU",
}


@dataclass
class AnalyzedArticle:
    headline: str
    description: str
    mentioned_teams: List[str]
    keywords: List[str]
    impact_score: int
    sentiment: str

    @property
    def is_high_impact(self) -> bool:
        return self.impact_score >= HIGH_IMPACT_THRESHOLD

    def to_news(self) -> NewsArticle:
        return NewsArticle(
            headline=self.headline,
            description=self.description,
            mentioned_teams=list(self.mentioned_teams),
            sentiment=self.sentiment,
            impact_score=self.impact_score,
            is_high_impact=self.is_high_impact,
        )


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b")


def mentions(text: str, *terms: str) -> bool:
    """True if any of ``terms`` appears in ``text`` as a whole word or phrase."""
    return any(_term_pattern(t).search(text) for t in terms)


def _impact_score(text: str, keywords: List[str]) -> int:
    score = min(len(keywords) * 15, 50)
    if mentions(text, "out") and mentions(text, "injury", "injured"):
        score += 30
    if mentions(text, "trade", "traded"):
        score += 25
    if mentions(text, "surgery"):
        score += 35
    if mentions(text, "returns", "cleared"):
        score += 20
    if mentions(text, "suspended", "ejected"):
        score += 15
    return min(score, 100)


def _sentiment(text: str) -> str:
    positive = sum(1 for w in POSITIVE_WORDS if mentions(text, w))
    negative = sum(1 for w in NEGATIVE_WORDS if mentions(text, w))
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def analyze_article(
    headline: str,
    description: str = "",
    aliases: Optional[Mapping[str, str]] = None,
) -> AnalyzedArticle:
    aliases = TEAM_ALIASES if aliases is None else aliases
    text = f"{headline} {description}".lower()

    teams: List[str] = []
    for alias, abbr in aliases.items():
        if abbr not in teams and mentions(text, alias.lower()):
            teams.append(abbr)

    keywords = [kw for kw in HIGH_IMPACT_KEYWORDS if mentions(text, kw)]
    return AnalyzedArticle(
        headline=headline,
        description=description,
        mentioned_teams=teams,
        keywords=keywords,
        impact_score=_impact_score(text, keywords),
        sentiment=_sentiment(text),
    )


def group_by_team(articles: Iterable[AnalyzedArticle]) -> Dict[str, List[AnalyzedArticle]]:
    by_team: Dict[str, List[AnalyzedArticle]] = {}
    for article in articles:
        for team in article.mentioned_teams:
            by_team.setdefault(team, []).append(article)
    return by_team


@dataclass
class BettingAlert:
    headline: str
    teams: List[str]
    impact: int
    sentiment: str
    keywords: List[str] = field(default_factory=list)
    recommendation: str = ""


def alert_recommendation(article: AnalyzedArticle) -> str:
    if not article.mentioned_teams:
        return "Monitor for team-specific impacts"
    team = article.mentioned_teams[0]
    if "out" in article.keywords or "surgery" in article.keywords:
        return f"Consider betting AGAINST {team} - key player news may not be priced in"
    if "returns" in article.keywords or "cleared" in article.keywords:
        return f"Consider betting ON {team} - returning player may boost performance"
    if article.sentiment == "negative":
        return f"Watch {team} lines for potential overreaction opportunities"
    if article.sentiment == "positive":
        return f"Lines may move toward {team} - act early if betting"
    return f"Monitor {team} for line movements"


def betting_alerts(articles: Iterable[AnalyzedArticle]) -> List[BettingAlert]:
    """Alerts for high-impact articles, highest impact first."""
    ranked = sorted(
        (a for a in articles if a.is_high_impact), key=lambda a: a.impact_score, reverse=True
    )
    alerts = [
        BettingAlert(
            headline=a.headline,
            teams=list(a.mentioned_teams),
            impact=a.impact_score,
            sentiment=a.sentiment,
            keywords=a.keywords[:3],
            recommendation=alert_recommendation(a),
        )
        for a in ranked
    ]
    logger.debug("%d high-impact news alerts", len(alerts))
    return alerts
