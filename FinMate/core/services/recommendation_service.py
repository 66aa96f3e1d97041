"""
Recommendation Service — Explains how a user can improve an estimated credit score.

Recommendations come from the text-generation API when it is available
and answers in the expected format; otherwise from a fixed rule table.
"""
import logging
import math
import re
from typing import List, Tuple

from core.clients.gemini_client import TextGenerationClient
from core.models.entities import FinancialProfile, ScoreResult, Recommendation
from utils.helpers import LoggingUtils, NumberUtils, StringUtils

logger = logging.getLogger(__name__)

MIN_RECOMMENDATIONS = 3
MAX_RECOMMENDATIONS = 4

SECTION_SPLIT = re.compile(r'(?=^[ \t]*-[ \t]*TITLE:)', re.IGNORECASE | re.MULTILINE)
FIELD_MARKER = r'(?:TITLE|IMPACT|TIMELINE):'
# A field value runs until the next marker, a blank line or the end of the text
FIELD_END = rf'(?=\s*-\s*{FIELD_MARKER}|\n[ \t]*{FIELD_MARKER}|\n[ \t]*\n|\Z)'


def _field_pattern(name: str) -> re.Pattern:
    return re.compile(rf'{name}:\s*(.+?){FIELD_END}', re.IGNORECASE | re.DOTALL)


TITLE_PATTERN = _field_pattern('TITLE')
IMPACT_PATTERN = _field_pattern('IMPACT')
TIMELINE_PATTERN = _field_pattern('TIMELINE')

REVIEW_REPORT_RECOMMENDATION = Recommendation(
    title="Review your credit reports for errors",
    impact=("Up to 25% of credit reports contain errors that could be lowering your score. "
            "Disputing inaccuracies like incorrect late payments or account balances might "
            "boost your score by 20+ points."),
    timeline=("Most disputes are resolved within 30 days, with score improvements appearing "
              "immediately after corrections are made."),
)


def _format_number(value) -> str:
    """Render 12.0 as 12 and keep real fractions"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:g}"


def _number_or(value, default: float) -> float:
    number = NumberUtils.to_number(value)
    return default if number is None else number


def debt_to_income_percent(profile: FinancialProfile) -> float:
    """Balance as a percentage of income; infinite when there is no income"""
    balance = max(0.0, _number_or(profile.total_balance, 0.0))
    income = _number_or(profile.annual_income, 0.0)
    if income <= 0:
        return math.inf if balance > 0 else 0.0
    return balance / income * 100


def build_recommendation_prompt(profile: FinancialProfile, result: ScoreResult) -> str:
    """Prompt asking for 3-4 recommendations in TITLE/IMPACT/TIMELINE form"""
    return f"""
    I need personalized, meaningful suggestions to improve this person's credit score.

    Current financial situation:
    - Credit Score: {result.score} ({result.category.value})
    - Payment History: {StringUtils.normalize_choice(profile.payment_history) or 'unknown'}
    - Credit Utilization: {_format_number(profile.credit_utilization_percent)}%
    - Credit Age: {_format_number(profile.credit_age_years)} years
    - Account Mix: {StringUtils.normalize_choice(profile.account_type_diversity) or 'unknown'}
    - Recent Inquiries: {_format_number(profile.recent_inquiries)}
    - Total Balance: ₹{_format_number(profile.total_balance)}
    - Annual Income: ₹{_format_number(profile.annual_income)}

    Please provide 3-4 specific, clear recommendations that are DIRECTLY RELEVANT to this person's situation.
    Use this format for each recommendation:

    - TITLE: [Clear action statement, 5-10 words]
    - IMPACT: [1-2 sentences explaining specifically how this will improve their score and why it matters]
    - TIMELINE: [When they might see results, be specific about timeframe]

    Focus on the biggest problems in their profile. Make recommendations proportional to the severity of issues.
    Be specific - mention actual numbers and percentages when relevant.
    Emphasize the MOST impactful changes first.
    """


def parse_recommendations(text: str) -> List[Recommendation]:
    """Extract TITLE/IMPACT/TIMELINE records; sections without a title are dropped"""
    recommendations = []
    for section in SECTION_SPLIT.split(text or ''):
        if not section.strip():
            continue

        title_match = TITLE_PATTERN.search(section)
        if not title_match or not title_match.group(1).strip():
            continue

        impact_match = IMPACT_PATTERN.search(section)
        timeline_match = TIMELINE_PATTERN.search(section)
        recommendations.append(Recommendation(
            title=title_match.group(1).strip(),
            impact=impact_match.group(1).strip() if impact_match else "",
            timeline=timeline_match.group(1).strip() if timeline_match else "",
        ))

    return recommendations


def fallback_recommendations(profile: FinancialProfile, result: ScoreResult = None) -> List[Recommendation]:
    """Rule-based recommendations.

    Checks run in a fixed order and every matching check contributes one
    entry, so position 0 is always the payment-history advice when that
    check fires. Lists shorter than three are padded with the credit
    report review; the result is cut to four.
    """
    suggestions = []
    utilization = _number_or(profile.credit_utilization_percent, 100.0)
    age = _number_or(profile.credit_age_years, 0.0)
    inquiries = _number_or(profile.recent_inquiries, math.inf)

    if StringUtils.normalize_choice(profile.payment_history) != 'excellent':
        suggestions.append(Recommendation(
            title="Set up automatic payments for all bills",
            impact=("Payment history makes up 35% of your score. Automating payments ensures you'll "
                    "never miss a due date, which can prevent future score drops of 80-100 points "
                    "from late payments."),
            timeline=("Your score should start improving within 3-6 months as you build a consistent "
                      "on-time payment history."),
        ))

    if utilization > 30:
        suggestions.append(Recommendation(
            title="Reduce credit utilization below 30%",
            impact=(f"Your current utilization of {_format_number(utilization)}% is hurting your score. "
                    "Lowering it below 30% can boost your score by 20-40 points since utilization "
                    "accounts for 30% of your total score."),
            timeline="You may see improvement as soon as your next statement closing date after reducing balances.",
        ))

    if age < 5:
        suggestions.append(Recommendation(
            title="Maintain oldest credit accounts",
            impact=(f"With only {_format_number(age)} years of credit history, you need to nurture account "
                    "age. Keep your oldest accounts open and active with small, regular purchases to "
                    "strengthen the 15% of your score based on length of history."),
            timeline="This is a long-term strategy; each year adds value to your credit age, gradually improving your score.",
        ))

    if StringUtils.normalize_choice(profile.account_type_diversity) != 'diverse':
        suggestions.append(Recommendation(
            title="Diversify your credit account types",
            impact=("Your limited account mix is restricting 10% of your score potential. Adding a "
                    "different type of credit (installment loan or credit card) demonstrates you can "
                    "manage various credit responsibilities responsibly."),
            timeline="Allow 6-12 months for new accounts to mature and positively impact your score by 10-20 points.",
        ))

    if inquiries > 2:
        inquiry_count = _format_number(inquiries) if math.isfinite(inquiries) else "many"
        suggestions.append(Recommendation(
            title="Pause new credit applications",
            impact=(f"Your {inquiry_count} recent inquiries are reducing your score. Each hard inquiry "
                    "can lower it by 5-10 points and signals risk to lenders. Avoiding new applications "
                    "will stabilize this factor."),
            timeline="The negative impact of inquiries diminishes after 12 months and they're removed completely after 24 months.",
        ))

    dti = debt_to_income_percent(profile)
    if dti > 30:
        dti_text = f"{round(dti)}%" if math.isfinite(dti) else "over 100%"
        suggestions.append(Recommendation(
            title="Create a debt reduction plan",
            impact=(f"Your debt-to-income ratio of {dti_text} is high compared to the recommended maximum "
                    "of 30%. While not directly part of your credit score, lenders view high DTI as "
                    "risky, affecting loan approvals and terms."),
            timeline=("Commit to a 6-month debt reduction plan and track monthly progress. Lower DTI will "
                      "improve approval odds on future applications."),
        ))

    if len(suggestions) < MIN_RECOMMENDATIONS:
        suggestions.append(REVIEW_REPORT_RECOMMENDATION)

    return suggestions[:MAX_RECOMMENDATIONS]


class RecommendationService:
    def __init__(self, generation_client: TextGenerationClient = None):
        self.generation_client = generation_client or TextGenerationClient()

    def generate_with_source(self, profile: FinancialProfile,
                             result: ScoreResult) -> Tuple[List[Recommendation], bool]:
        """Recommendations plus whether they came from the generation API"""
        if not self.generation_client.is_configured:
            logger.warning("Gemini API key is not provided. Using rule-based recommendations.")
            return fallback_recommendations(profile, result), False

        try:
            text = self.generation_client.generate(build_recommendation_prompt(profile, result))
        except Exception as e:
            LoggingUtils.log_external_failure("gemini", "credit_recommendations", e)
            return fallback_recommendations(profile, result), False

        recommendations = parse_recommendations(text)
        if not recommendations:
            logger.warning("No structured recommendations found in Gemini response, using fallback suggestions")
            return fallback_recommendations(profile, result), False

        return recommendations[:MAX_RECOMMENDATIONS], True

    def generate(self, profile: FinancialProfile, result: ScoreResult) -> List[Recommendation]:
        recommendations, _ = self.generate_with_source(profile, result)
        return recommendations
