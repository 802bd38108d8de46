"""Static intent catalog for the agricultural assistant.

Built once at import time and shared by every IntentEngine. Weights are
hand-tuned: specific intents (model accuracy, predictions) outrank generic
ones (gratitude, farewell).
"""
from models.intent import Intent, IntentName, ActionType

GREETING_RESPONSE = (
    "Hello! 👋 Welcome to SmartAgriMarket. I'm your AI agricultural assistant. I can help with:\n"
    "• Price predictions 📊\n"
    "• Yield forecasting 🌾\n"
    "• Demand analysis 📈\n"
    "• Market insights 💡\n\n"
    "What would you like to know?"
)

HELP_RESPONSE = (
    "I'm your AI farming assistant! 🤖 I can help with:\n\n"
    "📊 **Price Predictions**: Ask 'What will tomato price be next week?'\n"
    "🌾 **Yield Forecasting**: Ask 'What yield can I expect for carrots?'\n"
    "📈 **Demand Analysis**: Ask 'What's the demand for potatoes?'\n"
    "💡 **Explanations**: Ask 'Why is the price increasing?'\n\n"
    "Just ask naturally - I'll understand!"
)

INTENT_CATALOG: tuple[Intent, ...] = (
    Intent(
        name=IntentName.PREDICT_PRICE,
        keywords=("price", "cost", "predict", "forecast", "what will", "how much",
                  "pricing", "rate", "estimate"),
        weight=1.5,
        response="I can predict crop prices for you. Which crop are you interested in?",
        required_entities=("crop",),
        action=ActionType.PREDICT_PRICE,
    ),
    Intent(
        name=IntentName.PREDICT_YIELD,
        keywords=("yield", "harvest", "production", "output", "how much will grow",
                  "crop output"),
        weight=1.5,
        response="I can help predict crop yield. Which crop and location?",
        required_entities=("crop",),
        action=ActionType.PREDICT_YIELD,
    ),
    Intent(
        name=IntentName.PREDICT_DEMAND,
        keywords=("demand", "market need", "consumption", "buyers", "market demand",
                  "popular"),
        weight=1.5,
        response="I can forecast market demand. Which crop are you asking about?",
        required_entities=("crop",),
        action=ActionType.PREDICT_DEMAND,
    ),
    Intent(
        name=IntentName.EXPLAIN_PREDICTION,
        keywords=("why", "explain", "reason", "how come", "because", "factors",
                  "what causes", "explain this"),
        weight=1.3,
        response="Let me explain the factors affecting this prediction.",
        action=ActionType.EXPLAIN,
    ),
    Intent(
        name=IntentName.GREETING,
        keywords=("hello", "hi", "hey", "greetings", "good morning", "good afternoon",
                  "good evening", "wassup"),
        weight=1.0,
        response=GREETING_RESPONSE,
    ),
    Intent(
        name=IntentName.HELP,
        keywords=("help", "assist", "support", "what can you do", "features", "options",
                  "guide"),
        weight=1.2,
        response=HELP_RESPONSE,
    ),
    Intent(
        name=IntentName.BROWSE_PRODUCTS,
        keywords=("products", "crops", "vegetables", "fruits", "catalog", "browse",
                  "available", "sell", "items"),
        weight=1.0,
        response=(
            "We have fresh produce including:\n"
            "• Vegetables: Tomatoes, Carrots, Potatoes, Onions, Peppers 🥕\n"
            "• Fruits: Mangoes, Bananas, Oranges, Apples 🍎\n"
            "• Grains & Spices 🌾\n\n"
            "Which would you like to know more about?"
        ),
    ),
    Intent(
        name=IntentName.MARKET_TRENDS,
        keywords=("trend", "trends", "market", "insights", "analysis", "statistics",
                  "patterns", "movement"),
        weight=1.3,
        response=(
            "📊 Current Market Trends:\n"
            "• Seasonal patterns affecting supply\n"
            "• Price volatility indicators\n"
            "• Demand-supply balance\n\n"
            "Which crop's trends would you like to see?"
        ),
    ),
    Intent(
        name=IntentName.QUALITY_INFO,
        keywords=("quality", "fresh", "grade", "assessment", "premium", "organic", "best"),
        weight=1.1,
        response=(
            "🏆 Quality Assessment:\n"
            "• Color and texture indicators\n"
            "• Freshness testing methods\n"
            "• Grading standards\n"
            "• Organic certification\n\n"
            "I can help assess quality factors for your crops!"
        ),
    ),
    Intent(
        name=IntentName.ORDER_INFO,
        keywords=("order", "buy", "purchase", "checkout", "cart", "shopping"),
        weight=1.0,
        response=(
            "To place an order:\n"
            "1. Browse products in Shop\n"
            "2. Add to cart\n"
            "3. Checkout\n"
            "4. Enter delivery details\n\n"
            "Need help with a specific order?"
        ),
    ),
    Intent(
        name=IntentName.FARMER_REGISTRATION,
        keywords=("farmer", "sell my crops", "become seller", "register", "join",
                  "vendor", "seller"),
        weight=1.2,
        response=(
            "Join as a farmer:\n"
            "1. Sign up\n"
            "2. Get verified\n"
            "3. List your products\n"
            "4. Use AI insights for pricing\n"
            "5. Start earning! 💰\n\n"
            "Ready to register?"
        ),
    ),
    Intent(
        name=IntentName.GRATITUDE,
        keywords=("thank", "thanks", "appreciate", "helpful", "great"),
        weight=0.8,
        response="You're welcome! 😊 Anything else I can help with?",
    ),
    Intent(
        name=IntentName.FAREWELL,
        keywords=("bye", "goodbye", "see you", "exit", "quit", "later"),
        weight=0.8,
        response="Goodbye! 👋 Happy farming! 🌾",
    ),
    Intent(
        name=IntentName.MODEL_ACCURACY,
        keywords=("accuracy", "r2", "mae", "rmse", "how accurate", "model performance",
                  "reliable"),
        weight=1.4,
        response=(
            "🎯 AI Model Performance:\n\n"
            "**Price Predictor:**\n"
            "• Accuracy (R²): 99.92%\n"
            "• Mean Absolute Error: Rs. 0.82\n"
            "• RMSE: Rs. 3.25\n\n"
            "**Yield Predictor:**\n"
            "• Accuracy (R²): 98.5%\n\n"
            "**Demand Predictor:**\n"
            "• Accuracy (R²): 97.8%\n\n"
            "Our models are highly reliable! 🚀"
        ),
    ),
    Intent(
        name=IntentName.SHOW_DASHBOARD,
        keywords=("dashboard", "chart", "graph", "analytics", "visualization",
                  "show model", "performance"),
        weight=1.3,
        response="📊 Opening ML Dashboard...",
        action=ActionType.SHOW_DASHBOARD,
    ),
)

# Labels used when asking the user to pick between several candidate intents
INTENT_DISPLAY_NAMES: dict[IntentName, str] = {
    IntentName.PREDICT_PRICE: "Get price prediction",
    IntentName.PREDICT_YIELD: "Get yield forecast",
    IntentName.PREDICT_DEMAND: "Get demand analysis",
    IntentName.EXPLAIN_PREDICTION: "Explain a prediction",
    IntentName.BROWSE_PRODUCTS: "Browse products",
    IntentName.MARKET_TRENDS: "View market trends",
    IntentName.HELP: "Get help",
    IntentName.MODEL_ACCURACY: "View model accuracy",
}


def get_intent_display_name(name: IntentName) -> str:
    """Human-readable label for an intent, falling back to its identifier."""
    return INTENT_DISPLAY_NAMES.get(name, name.value)
