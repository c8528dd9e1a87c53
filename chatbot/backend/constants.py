APP_NAME = "Conversational Chat Service"
APP_VERSION = "1.0.0"
DEFAULT_CORS_ALLOW_ORIGINS = [
	"http://localhost",
	"http://127.0.0.1",
	"http://localhost:3000",
]
DEFAULT_TRUSTED_HOSTS = [
	"127.0.0.1",
	"localhost",
	"testserver",
]

SYSTEM_PROMPT = (
	"You are a helpful and friendly assistant. Keep your responses concise and "
	"relevant to the user's queries. Always try to clarify ambiguous requests."
)

DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_OPENAI_TEMPERATURE = 0.7
DEFAULT_OPENAI_MAX_TOKENS = 150
DEFAULT_OPENAI_TIMEOUT_S = 30.0

# History length (system message included) up to which "help" gets the canned welcome.
EARLY_HELP_MAX_TURN_COUNT = 4

VALIDATION_FAILED_TEXT = "Please provide both 'userId' and 'message' in your request."
VALIDATION_FAILED_REASON = "Missing userId or message"
FAILURE_TEXT_TEMPLATE = "I encountered an issue processing your request: {error}. Please try again."
EARLY_HELP_TEXT_TEMPLATE = "Welcome! How can I assist you with {topic}?"
EARLY_HELP_PRODUCT_TOPIC = "our products"
EARLY_HELP_GENERIC_TOPIC = "your query"
