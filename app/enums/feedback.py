from enum import Enum


class FeedbackStatus(str, Enum):
    active = "active"
    flagged = "flagged"
    hidden = "hidden"


class ExperienceTag(str, Enum):
    fast_shipping = "fast_shipping"
    excellent_packaging = "excellent_packaging"
    as_described = "as_described"
    good_communication = "good_communication"
    professional_seller = "professional_seller"
    would_buy_again = "would_buy_again"
    exceeded_expectations = "exceeded_expectations"
    great_value = "great_value"
    quick_response = "quick_response"
    helpful_seller = "helpful_seller"


class FeedbackIssue(str, Enum):
    late_delivery = "late_delivery"
    poor_packaging = "poor_packaging"
    not_as_described = "not_as_described"
    poor_communication = "poor_communication"
    item_damaged = "item_damaged"
    quality_issues = "quality_issues"
    shipping_problems = "shipping_problems"
    seller_unresponsive = "seller_unresponsive"
