"""Built-in form templates and keyword responses"""

from core.models import FormDefinition, FormField, FieldValidation, PredefinedResponse
from core.enums import FieldType


FORM_TEMPLATES: dict[str, FormDefinition] = {
    "contact": FormDefinition(
        id="contact",
        title="Contact Information",
        description="Please fill out your contact details so we can get in touch with you.",
        fields=[
            FormField(id="firstName", label="First Name", placeholder="Enter your first name", required=True),
            FormField(id="lastName", label="Last Name", placeholder="Enter your last name", required=True),
            FormField(
                id="email",
                type=FieldType.EMAIL,
                label="Email Address",
                placeholder="Enter your email address",
                required=True,
                validation=FieldValidation(
                    pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
                    message="Please enter a valid email address",
                ),
            ),
            FormField(id="phone", type=FieldType.PHONE, label="Phone Number", placeholder="Enter your phone number"),
            FormField(id="company", label="Company", placeholder="Enter your company name"),
        ],
        submit_text="Submit Contact Info",
    ),
    "feedback": FormDefinition(
        id="feedback",
        title="Feedback Form",
        description="We value your feedback! Please share your thoughts with us.",
        fields=[
            FormField(id="name", label="Your Name", placeholder="Enter your name", required=True),
            FormField(id="email", type=FieldType.EMAIL, label="Email Address", placeholder="Enter your email", required=True),
            FormField(
                id="rating",
                type=FieldType.SELECT,
                label="Overall Rating",
                required=True,
                options=["Excellent", "Good", "Average", "Poor", "Very Poor"],
            ),
            FormField(
                id="category",
                type=FieldType.SELECT,
                label="Feedback Category",
                required=True,
                options=["Product Quality", "Customer Service", "Website Experience", "Pricing", "Other"],
            ),
            FormField(
                id="comments",
                type=FieldType.TEXTAREA,
                label="Additional Comments",
                placeholder="Please share your detailed feedback...",
            ),
        ],
        submit_text="Submit Feedback",
    ),
    "survey": FormDefinition(
        id="survey",
        title="Customer Survey",
        description="Help us improve by answering a few quick questions.",
        fields=[
            FormField(
                id="customerType",
                type=FieldType.SELECT,
                label="Customer Type",
                required=True,
                options=["New Customer", "Existing Customer", "Potential Customer"],
            ),
            FormField(
                id="age",
                type=FieldType.SELECT,
                label="Age Group",
                options=["18-25", "26-35", "36-45", "46-55", "56-65", "65+"],
            ),
            FormField(
                id="frequency",
                type=FieldType.SELECT,
                label="How often do you use our service?",
                required=True,
                options=["Daily", "Weekly", "Monthly", "Rarely", "First time"],
            ),
            FormField(
                id="recommendation",
                type=FieldType.SELECT,
                label="Would you recommend us to others?",
                required=True,
                options=["Definitely", "Probably", "Maybe", "Probably not", "Definitely not"],
            ),
            FormField(
                id="improvements",
                type=FieldType.TEXTAREA,
                label="What improvements would you suggest?",
                placeholder="Share your suggestions...",
            ),
        ],
        submit_text="Submit Survey",
    ),
    "appointment": FormDefinition(
        id="appointment",
        title="Book an Appointment",
        description="Schedule a meeting with our team.",
        fields=[
            FormField(id="fullName", label="Full Name", placeholder="Enter your full name", required=True),
            FormField(id="email", type=FieldType.EMAIL, label="Email Address", placeholder="Enter your email", required=True),
            FormField(id="phone", type=FieldType.PHONE, label="Phone Number", placeholder="Enter your phone number", required=True),
            FormField(
                id="appointmentType",
                type=FieldType.SELECT,
                label="Appointment Type",
                required=True,
                options=["Consultation", "Demo", "Support", "Sales Meeting", "Other"],
            ),
            FormField(id="preferredDate", type=FieldType.DATE, label="Preferred Date", required=True),
            FormField(
                id="message",
                type=FieldType.TEXTAREA,
                label="Additional Message",
                placeholder="Tell us more about your needs...",
            ),
        ],
        submit_text="Book Appointment",
    ),
}


def _form_response(triggers: list[str], response: str, template: str) -> PredefinedResponse:
    return PredefinedResponse(
        trigger=triggers,
        response=response,
        category="form",
        is_form=True,
        form_data=FORM_TEMPLATES[template],
    )


# Order matters: the first entry with a matching trigger wins.
# {time} and {date} are filled in when the response is sent.
PREDEFINED_RESPONSES: list[PredefinedResponse] = [
    PredefinedResponse(
        trigger=["hello", "hi", "hey", "greetings"],
        response="Hello! I'm your AI assistant. How can I help you today?",
        category="greeting",
    ),
    PredefinedResponse(
        trigger=["how are you", "how are you doing", "what's up"],
        response="I'm doing great, thank you for asking! I'm here and ready to help you with any questions or tasks you might have.",
        category="greeting",
    ),
    PredefinedResponse(
        trigger=["what can you do", "help", "capabilities", "what are your features"],
        response="I can help you with a variety of tasks including answering questions, providing information, helping with problem-solving, and collecting information through forms. I can also export form data to Excel files for easy management.",
        category="help",
    ),
    _form_response(
        ["contact form", "contact info", "get in touch", "contact details"],
        "I'd be happy to collect your contact information! Please fill out this form:",
        "contact",
    ),
    _form_response(
        ["feedback", "review", "rate us", "feedback form"],
        "We'd love to hear your feedback! Please fill out this form to share your thoughts:",
        "feedback",
    ),
    _form_response(
        ["survey", "questionnaire", "customer survey"],
        "Help us improve by participating in our quick survey:",
        "survey",
    ),
    _form_response(
        ["appointment", "book meeting", "schedule", "book appointment"],
        "I'll help you book an appointment. Please fill out this form:",
        "appointment",
    ),
    PredefinedResponse(
        trigger=["weather", "temperature", "forecast"],
        response="I'd be happy to help with weather information! However, I don't have access to real-time weather data. You might want to check a weather app or website for current conditions.",
        category="information",
    ),
    PredefinedResponse(
        trigger=["what time is it", "current time", "time"],
        response="The current time is {time}. Please note that this is based on the server's local time.",
        category="information",
    ),
    PredefinedResponse(
        trigger=["what date is it", "today", "date"],
        response="Today is {date}.",
        category="information",
    ),
    PredefinedResponse(
        trigger=["thank you", "thanks", "appreciate"],
        response="You're very welcome! I'm glad I could help. Is there anything else you'd like to know or discuss?",
        category="courtesy",
    ),
    PredefinedResponse(
        trigger=["bye", "goodbye", "see you later", "farewell"],
        response="Goodbye! It was great chatting with you. Feel free to come back anytime you need assistance!",
        category="farewell",
    ),
    PredefinedResponse(
        trigger=["joke", "tell me a joke", "funny"],
        response="Why don't scientists trust atoms? Because they make up everything!",
        category="entertainment",
    ),
    PredefinedResponse(
        trigger=["programming", "coding", "development", "software"],
        response="I love talking about programming! Whether you need help with debugging, learning new concepts, or discussing best practices, I'm here to help. What specific programming topic interests you?",
        category="technical",
    ),
    PredefinedResponse(
        trigger=["export data", "download excel", "export forms", "download data"],
        response="I can help you export form submissions to Excel! All form data is automatically saved and can be downloaded as an Excel file. Would you like me to generate an export of all collected data?",
        category="export",
    ),
]

FALLBACK_RESPONSES = [
    "I understand you're asking about something, but I'm not sure how to respond to that specific question. You can try asking about forms like 'contact form', 'feedback', or 'survey', or ask me to export your data to Excel!",
    "That's an interesting question! While I don't have a specific answer for that, I can help you with forms and data collection. Try asking about 'contact form', 'appointment booking', or 'export data'.",
    "I'm not quite sure about that particular topic, but I'd be happy to help you with forms, surveys, or data export. What would you like to collect information about?",
    "I don't have a specific response for that question right now. However, I can help you create forms to collect information and export the data to Excel. What kind of form would you like to create?",
]
