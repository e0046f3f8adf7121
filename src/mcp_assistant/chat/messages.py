"""User-facing message catalogs."""

APP_MESSAGES = {
    "welcome": "🚀 Welcome to the Advanced Assistant with MCP Servers!",
    "description": "🌤️ I can help you with weather, air quality, and the latest documentation via MCP servers.",
    "goodbye": "🚀 Thanks for using the MCP Assistant! Goodbye!",
    "processing": "🧠 Processing...",
    "connecting": "🔌 Connecting to MCP servers...",
    "mcp_connected": "✅ MCP server connected successfully!",
    "mcp_failed": "⚠️ MCP server connection failed:",
    "mcp_limited": "📚 Some features will be limited due to MCP server connectivity",
    "quit_instructions": '💡 Type "quit", "bye", or "exit" to end the conversation. Type /help for commands.',
    "no_capabilities": "💬 No specialized capabilities available. Running in general chat mode.",
}

ERROR_MESSAGES = {
    "weather_key_missing": "Weather API key not configured. Please add OPENWEATHER_API_KEY to your .env file.",
    "weather_key_instructions": "Get a free API key from https://openweathermap.org/api",
    "weather_key_invalid": "Invalid weather API key. Please check your OPENWEATHER_API_KEY.",
    "air_quality_key_missing": "Air Quality API key not configured. Please add AQICN_API_KEY to your .env file.",
    "air_quality_key_instructions": "Get a free API key from https://aqicn.org/api/",
    "air_quality_key_invalid": "Invalid air quality API token. Please check your AQICN_API_KEY.",
    "location_not_found": "Location not found. Please check the spelling and try again.",
    "location_suggestion": 'Try using a more specific location name, like "New York, NY" or "London, UK"',
    "fetch_error": "Unable to fetch data at this time.",
    "max_turns_exceeded": "⚠️ The agent reached the maximum number of turns.",
    "max_turns_suggestion": "Try rephrasing your question or breaking it into smaller parts.",
    "model_behavior_error": "⚠️ The model exhibited unexpected behavior. Please try again.",
    "authentication_error": "❌ OpenAI authentication failed.",
    "authentication_suggestion": "Check that OPENAI_API_KEY is set to a valid key.",
    "connection_error": "❌ Could not reach the model provider.",
    "connection_suggestion": "Check your network connection and try again.",
    "general_error": "❌ Sorry, there was an error processing your message:",
    "chat_start_error": "Failed to start chat:",
    "openai_key_missing": "OPENAI_API_KEY is required",
}

EXAMPLE_QUERIES = {
    "weather": [
        "What's the weather in New York?",
        "How hot is it in Tokyo today?",
        "Is it raining in London?",
    ],
    "air_quality": [
        "What's the air quality in Beijing?",
        "How's the air pollution in Delhi?",
        "Is the air quality good in San Francisco?",
    ],
    "documentation": [
        "What are the latest features in React?",
        "Show me OpenAI API documentation",
        "Get the latest LangChain docs",
        "What's new in Next.js?",
    ],
}

QUIT_WORDS = frozenset({"quit", "exit", "bye", "goodbye"})

HELP_TEXT = """Commands:
  /status        Show provider connection status
  /reconnect     Retry providers whose connection failed
  /capabilities  Show available capabilities
  /help          Show this help
  quit, exit, bye, goodbye  End the conversation"""
