"""
Centralized assistant prompts and canned responses.
All assistant text is defined here for easy maintenance and consistency.
"""

ASSISTANT_CONTEXT = (
    "You are an insurance assistant for SmartLife AI. "
    "The user's name is {name} and they are from {region}."
)

ASSISTANT_PROMPT = """{context}

User: {query}

Assistant:"""


# Keyword templates used by the offline assistant. Checked in order, first match wins.
KEYWORD_RESPONSES = [
    (
        ("policy",),
        "Based on your profile, I'd recommend our Comprehensive Life Care policy that covers "
        "health emergencies and has additional retirement benefits. Would you like me to provide "
        "more details about this policy?",
    ),
    (
        ("claim",),
        "To file a claim, you'll need to provide your policy number, description of the incident, "
        "date of occurrence, and any supporting documentation. You can start the process from your "
        "dashboard or I can guide you through it now.",
    ),
    (
        ("coverage",),
        "Your current policy covers medical emergencies, hospitalization, and outpatient care. "
        "However, it doesn't include dental and vision coverage. Would you like to explore options "
        "to add these to your existing policy?",
    ),
    (
        ("premium", "payment"),
        "You can pay your premium from the dashboard using card, net banking or auto-debit. "
        "Would you like to set up an automatic payment or get a payment reminder?",
    ),
    (
        ("renew",),
        "I can help you renew your policy. Renewing before the due date keeps your coverage and "
        "any no-claim benefits intact. Would you like me to start the renewal now?",
    ),
    (
        ("cancel",),
        "I understand you're considering cancellation. Before proceeding, may I ask why you'd like "
        "to cancel your policy? Perhaps we can find an alternative solution that better meets your needs.",
    ),
]

GREETING_WORDS = ("hello", "hi")

GREETING_RESPONSE = "Hello {name}! How can I help you with your insurance needs today?"

DEFAULT_RESPONSE = (
    "Thank you for your question. As your SmartLife AI assistant, I'm here to help with all your "
    "insurance needs. How can I assist you further with your insurance policies or claims?"
)


# Upsell simulation copy
SIMULATION_RECOMMENDATIONS = [
    "Highlight key benefits of {product}",
    "Personalize message with user name and current policy details",
    "Include limited-time offer to create urgency",
]

NEXT_BEST_ACTIONS = [
    "Send renewal reminder email",
    "Suggest family coverage add-on",
    "Schedule policy review call",
]

PURCHASE_SUGGESTED_ACTIONS = [
    "Send personalized email with policy details",
    "Offer free consultation call",
]
