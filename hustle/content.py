"""
content.py - Generated Text

Text the simulation writes into messages and the feed:
- spin(): spintax expansion ("{Just|Finally} shipped" -> "Finally shipped")
- Response pools for opportunity replies and confirmations
- Filler and trending feed posts
- The onboarding script and wealth-stage messages

All randomness comes from the numpy Generator passed in, so a seeded game
writes the same text on every run.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
import re
from typing import List, Sequence, Tuple, TypeVar

from .catalog import MENTOR
from .core import Message, Post, make_id


T = TypeVar("T")

# Innermost {a|b|c} group (no nested braces inside).
_SPINTAX_GROUP = re.compile(r"\{([^{}]*)\}")


def pick(rng, options: Sequence[T]) -> T:
    """Uniformly choose one element of a non-empty sequence."""
    if not options:
        raise ValueError("Cannot pick from an empty sequence")
    return options[int(rng.integers(len(options)))]


def spin(template: str, rng) -> str:
    """
    Expand spintax by repeatedly resolving the innermost {a|b|...} group.

    Nested groups resolve inside-out, so "{a|{b|c}}" yields a, b or c.
    """
    text = template
    while True:
        match = _SPINTAX_GROUP.search(text)
        if match is None:
            return text
        choice = pick(rng, match.group(1).split("|"))
        text = text[:match.start()] + choice + text[match.end():]


def fill(template: str, **replacements: str) -> str:
    """Replace {key} placeholders without touching other braces."""
    for key, value in replacements.items():
        template = template.replace("{" + key + "}", value)
    return template


# ============================================================================
# OPPORTUNITY RESPONSES
# ============================================================================

USER_REJECTION_MESSAGES = (
    "I've reviewed the opportunity, but I don't think I can make it work with my current finances.",
    "Thanks for thinking of me, but I'll have to pass on this one due to budget constraints.",
    "I appreciate the offer, but I don't have the capital available right now.",
    "After checking my finances, I don't think I can take this on at the moment.",
)

USER_ACCEPTANCE_MESSAGES = (
    "I've reviewed the numbers and I'd like to move forward with this opportunity.",
    "This looks like a great fit. I'm ready to proceed with the deal.",
    "I'm excited about this opportunity and would like to move forward.",
    "The numbers work for me. Let's make this happen.",
)

COUNTERPARTY_FOLLOW_UPS = (
    "Great! I'll reach out to your accountant to handle the paperwork.",
    "Excellent! I'll coordinate with your accountant to finalize everything.",
    "Perfect! I'll work with your accountant to get everything set up.",
    "Wonderful! I'll connect with your accountant to process the deal.",
)

COUNTERPARTY_REJECTION_RESPONSES = (
    "I understand. Let me know if your situation changes in the future.",
    "No problem at all. I'll keep you in mind for other opportunities that might be a better fit.",
    "Thanks for considering it. I'll reach out if something more suitable comes up.",
    "I appreciate your honesty. Feel free to reach out when the timing is better.",
    "No problem, I understand! Thanks for considering the opportunity. Let me know if anything changes in the future.",
    "I understand completely. Timing isn't always right. Keep in touch and good luck with your journey!",
)

TOO_LATE_RESPONSES = (
    "Sorry, I didn't hear back in time and the {title} deal went to another investor.",
    "The window on {title} has closed. I'll ping you first next time.",
    "Too late on {title}, I'm afraid. The round filled up overnight.",
)

ACCOUNTANT_CONFIRMATIONS = (
    "Just to confirm, the deal for {company} has been completed. Congratulations on your new venture!",
    "Great news! The paperwork for {company} is all set. The business is now officially yours.",
    "I've processed all the documentation for {company}. Everything is finalized and ready to go.",
    "The acquisition of {company} is complete. All the necessary transfers have been processed.",
)

CELEBRATION_TEMPLATES = (
    "{Just|Officially|Finally} {closed|signed|sealed} the deal on {company}! {🚀|🎉|💼}",
    "New chapter: I'm now a partner in {company}. {Let's build|Time to scale|Here we go} {🔥|✨|💪}",
)

EXIT_BRAG_TEMPLATES = (
    "{Just|Finally} {sold|exited} {company} at a {multiple}x multiple. {What a ride|Onto the next one|Grateful for the team} {🎉|🥂|🚀}",
)


# ============================================================================
# FEED POSTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class FeedUser:
    name: str
    role: str
    handle: str


FEED_USERS: Tuple[FeedUser, ...] = (
    FeedUser("Sarah Chen", "Tech Lead", "@sarahcodes"),
    FeedUser("Alex Rivera", "Startup Founder", "@alexbuilds"),
    FeedUser("Maya Patel", "Product Manager", "@mayaships"),
    FeedUser("James Wilson", "Senior Developer", "@jwilsondev"),
    FeedUser("Ava Johnson", "UX Designer", "@avadesigns"),
    FeedUser("Marcus Brown", "DevOps Engineer", "@marcusops"),
    FeedUser("Emma Liu", "Data Scientist", "@emmalytics"),
    FeedUser("Carlos Rodriguez", "Mobile Developer", "@carlosapps"),
    FeedUser("TechCrunch", "Tech News", "@techcrunch"),
    FeedUser("VentureDaily", "VC News", "@venturedaily"),
    FeedUser("StartupInsider", "Startup News", "@startupinsider"),
    FeedUser("CryptoWatch", "Crypto News", "@cryptowatch"),
)

TRENDS_USER = FeedUser("TechTrends", "Market Analysis", "@techtrends")

POST_TEMPLATES = (
    "{Just|Finally|Successfully} {shipped|deployed|launched} my {new|latest} {project|app|startup}! {🚀|✨|💫}",
    "{Can't believe|Wow|Amazing} how much you can {learn|grow|achieve} in {tech|startups|coding} {these days|nowadays|lately} {💡|🎯|⚡️}",
    "Working on {something big|a new venture|an exciting project}... {stay tuned|more soon|details coming} {👀|💪|🔥}",
    "{Love|Enjoying|Appreciating} the {journey|process|grind} of {building|creating|developing} {something new|from scratch|with passion} {❤️|🙏|✨}",
    "Hot take: {React|TypeScript|SwiftUI} is {the future|game-changing|revolutionary} for {web dev|app development|frontend} {🔥|💭|💡}",
    "{Anyone else|Who else} {thinking|feeling} that {AI|blockchain|web3} is {overhyped|underrated|misunderstood}? {🤔|💭|❓}",
    "Day {23|45|78} of {learning|building|coding}: {making progress|getting there|feeling good} {💪|✨|🎯}",
    "{Debug|Standup|Planning} meeting {went well|finished early|was productive} today! {Time to code|Back to building|Let's ship this} {💻|⚡️|🚀}",
    "That feeling when {your tests pass|your deploy succeeds|your code works} on the first try {😌|🙌|✨}",
    "Interesting {article|thread|post} about {AI ethics|startup funding|tech trends} - thoughts? {🤔|💭|❓}",
    "The {tech|startup|crypto} market is {looking interesting|showing promise|heating up} {lately|these days|right now} {📈|🎯|👀}",
    "{Big news|Major update|Game changer} in the {tech|startup|crypto} world today! {Check it out|What do you think|Thoughts?} {🔥|📢|💡}",
    "{Started|Beginning|Diving into} a new {course|project|challenge} in {AI|blockchain|cloud} development {today|this week|this month} {📚|💡|🎯}",
    "Just {earned|got|received} my {AWS|Google Cloud|Azure} certification! {Next stop|Now onto|Time for} {more learning|new projects|bigger challenges} {🎉|🏆|💪}",
    "{Mentor|Lead|Manager} gave great {feedback|advice|insights} today about {scaling|architecture|best practices} {📝|💡|🎯}",
    "{Pitched|Presented|Demoed} to {investors|clients|partners} today - {went well|looking promising|feeling optimistic}! {🎤|💼|🚀}",
    "Month {3|6|12} of my {startup|indie project|side hustle}: {revenue growing|users increasing|metrics improving} {📈|💪|🎯}",
    "{Celebrating|Happy about|Excited for} our {first|latest|biggest} {customer win|funding round|partnership} {today|this week|this month}! {🎉|🥂|🚀}",
)

TECH_KEYWORDS = (
    "AI", "blockchain", "cloud", "DevOps", "React", "Swift", "Python",
    "machine learning", "web3", "crypto", "NFTs", "startups",
)

# Filler posts are backdated up to a day.
FILLER_MAX_AGE_SECONDS = 86400


def generate_filler_posts(count: int, rng, now: datetime) -> List[Post]:
    """Spun posts from random feed users, newest first."""
    posts = []
    for _ in range(count):
        user = pick(rng, FEED_USERS)
        age = int(rng.integers(0, FILLER_MAX_AGE_SECONDS + 1))
        posts.append(Post(
            author=user.name,
            role=user.role,
            handle=user.handle,
            content=spin(pick(rng, POST_TEMPLATES), rng),
            timestamp=now - timedelta(seconds=age),
            id=make_id(rng),
        ))
    posts.sort(key=lambda p: p.timestamp, reverse=True)
    return posts


def generate_trending_post(rng, now: datetime) -> Post:
    keyword = pick(rng, TECH_KEYWORDS)
    template = "{Breaking|Hot|Trending}: " + keyword + \
        " {market|industry|sector} is {booming|growing|exploding} {🔥|📈|🚀}"
    return Post(
        author=TRENDS_USER.name,
        role=TRENDS_USER.role,
        handle=TRENDS_USER.handle,
        content=spin(template, rng),
        timestamp=now,
        is_sponsored=True,
        id=make_id(rng),
    )


# ============================================================================
# SCRIPTED MESSAGES
# ============================================================================

ONBOARDING_BASE_DATE = datetime(2024, 1, 1)
ONBOARDING_SPACING = timedelta(seconds=60)

ONBOARDING_SCRIPT = (
    "Your goal is to achieve financial independence. You can do this in two phases:\n\n"
    "1️⃣ First, build enough side income to quit your job\n"
    "2️⃣ Then, grow your investments to achieve your ultimate goal",

    "You can quit your job when your monthly passive income exceeds your monthly expenses. "
    "This can come from:\n\n📱 Side projects\n💼 Consulting work\n📈 Investment returns",

    "To get started:\n\n1. Pull down the Feed to refresh and see opportunities\n"
    "2. Look for both small and large opportunities\n"
    "3. Check your Messages for details when something interests you\n"
    "4. Track your progress in the Bank tab",

    "I'll be here to guide you along the way. Good luck! 🚀\n\n"
    "P.S. First step: Pull down the Feed to start looking for opportunities!",
)

WEALTH_STAGE_MENTOR = (
    "Huge milestone! 🎉 Your income now covers all of your expenses. "
    "You're officially out of the rat race."
)

WEALTH_STAGE_ADVISOR = (
    "Congratulations on reaching financial independence. I've opened a family trust for you; "
    "proceeds from future business sales will be deposited there so we can grow them "
    "towards your goal."
)


def onboarding_messages() -> List[Message]:
    """The four mentor messages every new or empty game starts with."""
    return [
        Message(
            sender_id=MENTOR.sender_id,
            sender_name=MENTOR.name,
            sender_role=MENTOR.role,
            timestamp=ONBOARDING_BASE_DATE + ONBOARDING_SPACING * i,
            content=text,
            sequence=i + 1,
            id=f"onboarding-{i + 1}",
        )
        for i, text in enumerate(ONBOARDING_SCRIPT)
    ]
