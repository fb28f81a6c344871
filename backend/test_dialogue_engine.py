"""
Dialogue engine tests: classification order, intervention flows,
reflective fallback, persona prefix and the non-empty reply contract.

Random draws are pinned with ScriptedRandom or a seeded random.Random.
"""
import asyncio
import random
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__)))

from companion.agent.conversation_state import ConversationState, FlowAction, FlowName, IntentType
from companion.agent.dialogue_engine import DialogueEngine
from companion.agent.flows import CRAVING_FLOW, PANIC_FLOW, render
from companion.agent.intent_classifier import classify
from companion.agent.knowledge_base import KNOWLEDGE_BASE, IntentRule, _rx
from companion.agent.persona import ALL_OPENERS, FEMALE_OPENERS, MALE_OPENERS, persona_prefix
from companion.agent.reflection import DEFAULT_RESPONSES, reflect


class ScriptedRandom:
    """random() and choice() answer from fixed scripts (0.0 / index 0 once exhausted)."""

    def __init__(self, draws=(), picks=()):
        self.draws = list(draws)
        self.picks = list(picks)
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.draws.pop(0) if self.draws else 0.0

    def choice(self, seq):
        self.calls += 1
        index = self.picks.pop(0) if self.picks else 0
        return seq[index]


def make_engine(rng=None, **kwargs):
    return DialogueEngine(rng=rng or random.Random(7), **kwargs)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def test_classify_first_match_wins():
    rule = classify("I'm happy but I have a craving")
    assert rule.intent == IntentType.CRAVING

    rule = classify("I feel great today")
    assert rule.intent == IntentType.MOOD_HIGH


def test_classify_is_deterministic():
    for text in ["I have a craving", "hello there", "can't sleep again", "nothing to match here zz"]:
        first = classify(text)
        for _ in range(5):
            assert classify(text) is first


def test_classify_no_match_and_empty():
    assert classify("") is None
    assert classify(None) is None
    assert classify("zzz qqq") is None


def test_classify_case_insensitive_and_start_pattern():
    assert classify("HELLO").intent == IntentType.GREETING
    assert classify("start").intent == IntentType.GREETING
    assert classify("PANIC").intent == IntentType.PANIC_ATTACK


def test_keywords_match_whole_words_only():
    # Talk of drinking alcohol is not a hydration question
    for text in ["I've been drinking again", "I keep thinking about drinking"]:
        rule = classify(text)
        assert rule is None or rule.intent != IntentType.HYDRATION

    for text in ["I miss crystal", "I took painkillers"]:
        rule = classify(text)
        assert rule is None or rule.intent != IntentType.MOOD_LOW

    assert classify("I need some water").intent == IntentType.HYDRATION
    assert classify("I cried all night").intent == IntentType.MOOD_LOW
    assert classify("it's so painful").intent == IntentType.MOOD_LOW

    hydration = next(r for r in KNOWLEDGE_BASE if r.intent == IntentType.HYDRATION)
    engine = make_engine()
    assert engine.reply("I've been drinking again", conversation_id="w") not in hydration.responses


def test_rule_table_order():
    order = [rule.intent for rule in KNOWLEDGE_BASE]
    assert order == [
        IntentType.NUTRITION,
        IntentType.HYDRATION,
        IntentType.EXERCISE,
        IntentType.WITHDRAWAL_TIMELINE,
        IntentType.PAWS,
        IntentType.GREETING,
        IntentType.CRAVING,
        IntentType.RELAPSE,
        IntentType.PANIC_ATTACK,
        IntentType.ANXIETY,
        IntentType.MOOD_LOW,
        IntentType.MOOD_HIGH,
        IntentType.SLEEP,
        IntentType.MOTIVATION,
        IntentType.HALT_CHECK,
    ]


def test_rule_requires_responses():
    try:
        IntentRule(intent=IntentType.GREETING, patterns=_rx(r"x"), responses=())
    except ValueError:
        pass
    else:
        raise AssertionError("Rule without responses should be rejected")


# ---------------------------------------------------------------------------
# Craving flow
# ---------------------------------------------------------------------------

def test_craving_example_scenario():
    engine = make_engine()
    cid = "alex"

    entry = engine.reply("I have a craving", streak=15, name="Alex", conversation_id=cid)
    state = engine.get_state(cid)
    assert state.current_flow == FlowName.CRAVING_INTERVENTION
    assert state.step == 0
    assert "Urge Surfing" in entry
    assert "Where do you feel this craving in your body" in entry

    breathing = engine.reply("in my chest", streak=15, name="Alex", conversation_id=cid)
    assert engine.get_state(cid).step == 1
    assert "3 deep breaths" in breathing

    third = engine.reply("a little", streak=15, name="Alex", conversation_id=cid)
    assert "15-20 minutes" in third

    fourth = engine.reply("lamp, door, cup", streak=15, name="Alex", conversation_id=cid)
    assert "Alex, look at what you just did" in fourth
    assert engine.get_state(cid).step == 3

    closing = engine.reply("better", streak=15, name="Alex", conversation_id=cid)
    assert closing == CRAVING_FLOW.closing
    state = engine.get_state(cid)
    assert state.current_flow == FlowName.NORMAL
    assert state.step == 0


def test_craving_flow_closes_on_fifth_call():
    engine = make_engine()
    replies = [engine.reply(text, conversation_id="c") for text in ["craving", "x", "y", "z", "w"]]
    assert replies[0] == CRAVING_FLOW.prompts[0]
    assert replies[1:4] == [render(p, "Friend") for p in CRAVING_FLOW.prompts[1:]]
    assert replies[4] == CRAVING_FLOW.closing


def test_after_flow_ends_classification_resumes():
    engine = make_engine(rng=ScriptedRandom())
    for text in ["urge", "a", "b", "c", "d"]:
        engine.reply(text, conversation_id="c")
    assert engine.get_state("c").current_flow == FlowName.NORMAL

    reply = engine.reply("hello", name="Sam", conversation_id="c")
    assert reply == "Hello Sam! It's really good to see you. How are you feeling right now?"


def test_state_beyond_last_step_returns_closing():
    engine = make_engine()
    engine.store.save("c", ConversationState(current_flow=FlowName.CRAVING_INTERVENTION, step=4))
    assert engine.reply("anything", conversation_id="c") == CRAVING_FLOW.closing
    assert engine.get_state("c").current_flow == FlowName.NORMAL


def test_flow_ignores_rule_table():
    engine = make_engine()
    engine.reply("I have a craving", conversation_id="c")
    reply = engine.reply("I'm so happy, hello!", conversation_id="c")
    assert reply == CRAVING_FLOW.prompts[1]
    assert engine.get_state("c").current_flow == FlowName.CRAVING_INTERVENTION


def test_flow_advances_on_empty_input():
    engine = make_engine()
    engine.reply("trigger", conversation_id="c")
    engine.reply("", conversation_id="c")
    engine.reply(None, conversation_id="c")
    assert engine.get_state("c").step == 2


# ---------------------------------------------------------------------------
# Panic flow
# ---------------------------------------------------------------------------

def test_panic_flow_length():
    engine = make_engine()
    first = engine.reply("I'm having a panic attack", conversation_id="p")
    assert "5 things you can SEE" in first
    assert engine.get_state("p").current_flow == FlowName.PANIC_INTERVENTION

    assert "4 things you can physically FEEL" in engine.reply("tree", conversation_id="p")
    assert "3 things you can HEAR" in engine.reply("floor", conversation_id="p")
    assert engine.get_state("p").step == 2

    closing = engine.reply("birds", conversation_id="p")
    assert closing == PANIC_FLOW.closing
    assert engine.get_state("p").current_flow == FlowName.NORMAL


# ---------------------------------------------------------------------------
# Declared-only flows
# ---------------------------------------------------------------------------

def test_halt_launch_has_no_state_transition():
    engine = make_engine()
    reply = engine.reply("halt", conversation_id="h")
    assert reply.startswith("The HALT method is a lifesaver.")
    state = engine.get_state("h")
    assert state.current_flow == FlowName.NORMAL
    assert state.last_intent == IntentType.HALT_CHECK


def test_withdrawal_launch_is_single_reply():
    rules = (
        IntentRule(
            intent=IntentType.WITHDRAWAL_TIMELINE,
            patterns=_rx(r"\bwithdraw\w*"),
            responses=("Opening line.", "Never chosen."),
            action=FlowAction.START_WITHDRAWAL_FLOW,
        ),
    )
    engine = make_engine(rules=rules)
    for _ in range(3):
        assert engine.reply("withdrawal", conversation_id="w") == "Opening line."
    assert engine.get_state("w").current_flow == FlowName.NORMAL


def test_stored_flow_without_script_falls_back_to_normal():
    engine = make_engine(rng=ScriptedRandom())
    engine.store.save("x", ConversationState(current_flow=FlowName.HALT_ASSESSMENT, step=2))
    reply = engine.reply("hi", name="Jo", conversation_id="x")
    assert reply.startswith("Hello Jo!")
    assert engine.get_state("x").current_flow == FlowName.NORMAL


# ---------------------------------------------------------------------------
# Reflective fallback
# ---------------------------------------------------------------------------

def test_reflect_precedence_i_feel_first():
    reply = reflect("i feel because i am sad")
    assert reply == "It sounds like you're feeling because i am sad. Can you tell me what triggered that feeling?"


def test_engine_reflects_unmatched_feeling():
    engine = make_engine()
    reply = engine.reply("I feel because I am blue", conversation_id="r")
    assert reply.startswith("It sounds like you're feeling because i am blue.")


def test_reflect_i_am_and_because():
    assert reflect("i am new here") == "You say you are new here. How long have you felt like that?"
    assert reflect("it is because of work").startswith("I see. Identifying the 'why'")


def test_streak_reply_needs_long_streak_and_draw_above_threshold():
    assert reflect("zzz", streak=8, rng=ScriptedRandom(draws=[0.71])).startswith("You've held strong for 8 days.")
    assert reflect("zzz", streak=8, rng=ScriptedRandom(draws=[0.7], picks=[1])) == DEFAULT_RESPONSES[1]

    rng = ScriptedRandom(draws=[0.99], picks=[2])
    assert reflect("zzz", streak=7, rng=rng) == DEFAULT_RESPONSES[2]
    assert rng.draws == [0.99]  # streak too short: no draw taken


def test_generic_fallback_for_empty_input():
    engine = make_engine()
    assert engine.reply("", conversation_id="e") in DEFAULT_RESPONSES


# ---------------------------------------------------------------------------
# Persona prefix
# ---------------------------------------------------------------------------

def test_persona_prefix_by_gender():
    assert persona_prefix("Mike", "male", ScriptedRandom(draws=[0.1], picks=[1])) == MALE_OPENERS[1]
    assert persona_prefix("Ana", "female", ScriptedRandom(draws=[0.1], picks=[4])) == FEMALE_OPENERS[4]
    assert persona_prefix("Sam", None, ScriptedRandom(draws=[0.1])) == "Sam here. "
    assert persona_prefix("Sam", "neutral", ScriptedRandom(draws=[0.8])) == "Sam here. "


def test_persona_prefix_suppressed():
    assert persona_prefix("Mike", "male", ScriptedRandom(draws=[0.81])) == ""
    assert persona_prefix("Sam", None, ScriptedRandom(draws=[0.95])) == ""


def test_no_mentor_takes_no_draws():
    rng = ScriptedRandom()
    assert persona_prefix(None, "male", rng) == ""
    assert rng.calls == 0


def test_persona_composes_with_flows():
    engine = make_engine(rng=ScriptedRandom(draws=[0.2], picks=[0]))
    reply = engine.reply("I have a craving", mentor_name="Mike", mentor_gender="male", conversation_id="m")
    assert reply == MALE_OPENERS[0] + CRAVING_FLOW.prompts[0]


def test_persona_only_changes_prefix():
    engine = make_engine(rng=random.Random(42))
    greeting_rule = classify("hello")
    possible = {render(t, "Alex") for t in greeting_rule.responses}
    prefixes = sorted(set(ALL_OPENERS) | {"Rae here. "}, key=len, reverse=True)

    for i in range(50):
        gender = ["male", "female", None][i % 3]
        reply = engine.reply("hello", name="Alex", mentor_name="Rae", mentor_gender=gender, conversation_id="pc")
        body = reply
        for prefix in prefixes:
            if reply.startswith(prefix):
                body = reply[len(prefix):]
                break
        assert body in possible, body


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

def test_reply_never_empty_for_random_input():
    gen = random.Random(1234)
    alphabet = "abcdefghijklmnopqrstuvwxyz ABCXYZ0123456789!?.,'-éüßçø你好мир🙂\n\t"
    engine = make_engine(rng=random.Random(99))

    samples = ["", " ", "\n", "a" * 10000, "i feel", "i am", "because", "🙂" * 500]
    while len(samples) < 1000:
        length = gen.randint(0, 300)
        samples.append("".join(gen.choice(alphabet) for _ in range(length)))

    for i, text in enumerate(samples):
        reply = engine.reply(
            text,
            streak=gen.randint(0, 30),
            name="Friend",
            mentor_name="Rae" if i % 4 == 0 else None,
            mentor_gender=["male", "female", None][i % 3],
            conversation_id=f"fuzz-{i % 5}",
        )
        assert isinstance(reply, str)
        assert reply.strip(), f"Empty reply for {text!r}"


def test_conversations_are_independent():
    engine = make_engine()
    engine.reply("I have a craving", conversation_id="a")
    engine.reply("panic", conversation_id="b")
    engine.reply("still here", conversation_id="a")

    assert engine.get_state("a").current_flow == FlowName.CRAVING_INTERVENTION
    assert engine.get_state("a").step == 1
    assert engine.get_state("b").current_flow == FlowName.PANIC_INTERVENTION
    assert engine.get_state("b").step == 0


def test_last_intent_and_daily_log():
    engine = make_engine()
    engine.reply(
        "I can't sleep",
        daily_log={"water": 3, "meals": {"breakfast": True}, "exercises": ["Walk"]},
        conversation_id="d",
    )
    assert engine.get_state("d").last_intent == IntentType.SLEEP


def test_reset_forgets_conversation():
    engine = make_engine()
    engine.reply("craving", conversation_id="r")
    assert engine.reset("r") is True
    assert engine.get_state("r") is None
    assert engine.reset("r") is False


def test_respond_async_with_typing_delay():
    engine = make_engine(typing_delay=(0.0, 0.01))
    reply = asyncio.run(engine.respond("I have a craving", streak=15, name="Alex", conversation_id="async"))
    assert "Urge Surfing" in reply
    assert engine.get_state("async").current_flow == FlowName.CRAVING_INTERVENTION


def test_typing_pause_without_delay_returns_immediately():
    engine = make_engine()
    assert asyncio.run(engine.typing_pause()) is None
    assert engine.get_state("current_user") is None


def test_helpers_default_rng_when_none():
    assert reflect("zzz", rng=None) in DEFAULT_RESPONSES
    assert persona_prefix("Sam", "male", rng=None) in MALE_OPENERS + ("",)
    assert persona_prefix(None, rng=None) == ""


def test_bad_streak_is_treated_as_zero():
    engine = make_engine(rng=ScriptedRandom(picks=[3]))
    assert engine.reply("zzz", streak="lots", conversation_id="s") == DEFAULT_RESPONSES[3]
