from datetime import datetime

from chat import ChatResponder, FORM_TEMPLATES, find_response
from chat.responder import render
from chat.templates import FALLBACK_RESPONSES
from core.models import PredefinedResponse


def test_custom_qa_wins_over_predefined():
    custom = PredefinedResponse(id="qa_000001", trigger=["thanks"], response="Our pleasure!")
    reply = ChatResponder(custom_qa=[custom]).respond("Thanks a lot")

    assert reply.text == "Our pleasure!"
    assert reply.matched.id == "qa_000001"


def test_form_trigger_returns_template():
    reply = ChatResponder().respond("I would like to leave some feedback")

    assert reply.form is not None
    assert reply.form.id == FORM_TEMPLATES["feedback"].id
    assert reply.matched.category == "form"


def test_unknown_message_gets_fallback():
    reply = ChatResponder().respond("zzz qqq")
    assert reply.matched is None
    assert reply.form is None
    assert reply.text in FALLBACK_RESPONSES


def test_find_response_is_case_insensitive_and_ordered():
    responses = [
        PredefinedResponse(trigger=["Pricing"], response="first"),
        PredefinedResponse(trigger=["pricing plans"], response="second"),
    ]
    assert find_response("PRICING PLANS please", responses).response == "first"
    assert find_response("nothing", responses) is None


def test_render_placeholders():
    now = datetime(2024, 1, 31, 8, 30, 0)
    assert render("It is {time}", now) == "It is 08:30:00"
    assert render("Today is {date}.", now) == "Today is Wednesday, January 31, 2024."


def test_set_custom_qa_replaces_entries():
    responder = ChatResponder()
    responder.set_custom_qa([PredefinedResponse(trigger=["zzz"], response="custom")])
    assert responder.respond("zzz").text == "custom"
    assert responder.last_match.response == "custom"
