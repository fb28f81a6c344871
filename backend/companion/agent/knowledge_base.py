"""
Knowledge Base - ordered intent rules

ORDER MATTERS: the classifier returns the first rule whose pattern matches.
e.g. "I'm happy but I have a craving" is a craving, because craving sits
above mood_high.

Rules with an `action` launch a flow; their opening line is always
responses[0].
"""
import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

from .conversation_state import FlowAction, IntentType
from .flows import CRAVING_FLOW, PANIC_FLOW, Template


@dataclass(frozen=True)
class IntentRule:
    intent: IntentType
    patterns: Tuple[Pattern, ...]
    responses: Tuple[Template, ...]
    action: Optional[FlowAction] = None

    def __post_init__(self):
        if not self.patterns:
            raise ValueError(f"Rule {self.intent.value} needs at least one pattern")
        if not self.responses:
            raise ValueError(f"Rule {self.intent.value} needs at least one response")

    def matches(self, text_lower: str) -> bool:
        return any(p.search(text_lower) for p in self.patterns)


def _rx(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


KNOWLEDGE_BASE: Tuple[IntentRule, ...] = (
    IntentRule(
        intent=IntentType.NUTRITION,
        patterns=_rx(r"\b(food|eat|eating|diet|nutrition|vitamins?|supplements?|sugar|hungry)\b"),
        responses=(
            "Your brain is healing, and it needs fuel. Foods high in Omega-3s (like walnuts, fish) and antioxidants "
            "(berries, leafy greens) are great for brain repair.",
            "Sugar cravings are common in early recovery as your dopamine levels adjust. Try to stick to complex carbs "
            "and protein to keep your blood sugar stable.",
            "Pro-Tip: Dark chocolate (70%+) triggers a small dopamine release and is packed with antioxidants. "
            "A healthy little treat!",
            "Eating regular meals stabilizes your mood. Have you eaten something nutritious in the last 4 hours?",
        ),
    ),
    IntentRule(
        intent=IntentType.HYDRATION,
        patterns=_rx(r"\b(water|drink|thirsty?|hydrat\w*|dehydrat\w*)\b"),
        responses=(
            "Hydration is key for flushing out toxins. Aim for 3-4 liters a day. If you have a headache, start with "
            "a big glass of water.",
            "Dehydration can mimic anxiety and fatigue. Before you panic, drink a glass of water.",
            "Water helps your liver and kidneys do their heavy lifting during detox. Keep a bottle with you everywhere.",
        ),
    ),
    IntentRule(
        intent=IntentType.EXERCISE,
        patterns=_rx(r"\b(exercis\w*|run|running|gym|walk|walking|workout|activity|move|moving)\b"),
        responses=(
            "Movement generates natural endorphins - the body's own painkillers. Even a 10-minute walk can shift "
            "your mood significantly.",
            "You don't need a marathon. 'Green Exercise' (moving in nature) reduces cortisol levels faster than "
            "gym workouts.",
            "When you feel restless energy (akathisia), try to use it. Do pushups, dance, or walk until the energy "
            "settles.",
        ),
    ),
    IntentRule(
        intent=IntentType.WITHDRAWAL_TIMELINE,
        patterns=_rx(r"\b(timeline|how long|last|symptoms?|withdraw\w*|sick|nausea|shak\w*)\b"),
        responses=(
            "**Medical Disclaimer:** I am a support assistant, not a doctor. If symptoms are severe, please go to "
            "a hospital.\n\nGenerally, acute withdrawal peaks around day 3-5 for many substances and subsides by "
            "day 7-10. Post-acute symptoms can last months.",
            "It varies by substance, but the 'fog' usually starts to lift after the first two weeks. Hang in there; "
            "your body is doing incredible repair work right now.",
            "Physical symptoms are your body's way of recalibrating. Be gentle with it. Rest, hydrate, and don't "
            "expect to function at 100% yet.",
        ),
    ),
    IntentRule(
        intent=IntentType.PAWS,
        patterns=_rx(r"\b(paws|post[- ]acute|fog|foggy|memory|concentrat\w*|emotional|rollercoaster)\b"),
        responses=(
            "PAWS (Post-Acute Withdrawal Syndrome) is real. It includes brain fog, irritability, and memory issues. "
            "It's not permanent - it's just your brain rewiring.",
            "If you feel like you're 'going crazy' months after quitting, it might be PAWS. It comes in waves. "
            "This wave will break too.",
            "Be patient with your memory and focus. Use notes, set reminders, and lower your expectations for "
            "productivity for a while.",
        ),
    ),
    IntentRule(
        intent=IntentType.GREETING,
        patterns=_rx(r"\b(hi|hello|hey|morning|afternoon|evening|greetings)\b", r"^start$"),
        responses=(
            lambda name: f"Hello {name}! It's really good to see you. How are you feeling right now?",
            "Hi there! I'm here and I'm listening. What's on your mind today?",
            lambda name: f"Welcome back, {name}. I'm ready to walk this path with you today. How can I help?",
        ),
    ),
    IntentRule(
        intent=IntentType.CRAVING,
        patterns=_rx(r"\b(crav\w*|urges?|want to use|need a drink|need a hit|trigger\w*|fiending)\b"),
        responses=(CRAVING_FLOW.entry,),
        action=FlowAction.START_CRAVING_FLOW,
    ),
    IntentRule(
        intent=IntentType.RELAPSE,
        patterns=_rx(r"\b(relaps\w*|slipped|messed up|used again|drank|high)\b"),
        responses=(
            "Thank you for being honest. That takes courage. Please remember: a slip is an event, not a permanent "
            "failure. You haven't lost everything you learned.",
            "I'm here for you, no judgment. You are still worthy of recovery. Are you safe right now?",
            "Take a breath. Shame is not helpful right now - action is. What is the very next right thing you can "
            "do to get back to safety?",
        ),
    ),
    IntentRule(
        intent=IntentType.PANIC_ATTACK,
        patterns=_rx(r"\b(panic\w*|cant breathe|can't breathe|heart racing|dying|scared)\b"),
        responses=(PANIC_FLOW.entry,),
        action=FlowAction.START_PANIC_FLOW,
    ),
    IntentRule(
        intent=IntentType.ANXIETY,
        patterns=_rx(r"\b(anxi\w*|nervous|worry|worried|stress\w*|overwhelm\w*)\b"),
        responses=(
            "It sounds like you're carrying a heavy load right now. Anxiety creates a lot of noise, doesn't it? "
            "What's one small thing bothering you the most?",
            "I'm listening. When we name our fears, they often lose a little power. Want to tell me more about "
            "what's making you anxious?",
            "You've handled difficult feelings before. You can handle this moment too. Let's focus on just the "
            "next 5 minutes. What do you need right now?",
        ),
    ),
    IntentRule(
        intent=IntentType.MOOD_LOW,
        patterns=_rx(r"\b(sad|depress\w*|lone\w*|hurt\w*|pain|painful|cry|crying|cried|awful|terrible|hopeless)\b"),
        responses=(
            "I'm truly sorry you're hurting. It takes strength to just exist when things feel this heavy.",
            "You are not alone in this darkness, even if it feels that way. I'm right here. 💙",
            "It's okay to not be okay today. Recovery isn't a straight line. Be gentle with yourself.",
            "Emotions are like weather - they storm, but eventually they pass. We just need to find shelter until "
            "this passes. How can I support you?",
        ),
    ),
    IntentRule(
        intent=IntentType.MOOD_HIGH,
        patterns=_rx(r"\b(happy|good|great|awesome|proud|better|strong)\b"),
        responses=(
            "That is wonderful to hear! ✨ Hold onto this feeling - this is what recovery makes possible.",
            lambda name: f"I'm so proud of you, {name}! You're doing the work, and it shows.",
            "Yes! 💪 Moments like these are fuel for the journey. What's the best part of your day so far?",
        ),
    ),
    IntentRule(
        intent=IntentType.SLEEP,
        patterns=_rx(r"\b(sleep\w*|tired|awake|insomnia|exhaust\w*|nightmares?)\b"),
        responses=(
            "Sleep struggles are so common in recovery as the brain heals. It's frustrating, but it gets better.",
            "If you can't sleep, try 'The 4-7-8 Breathing': Inhale for 4, hold for 7, exhale for 8. It signals "
            "your nervous system to rest.",
            "Rest is productive too. Even if you're just lying there, your body is healing. Quiet rest is better "
            "than stressful tossing.",
            "Have you tried a 'brain dump'? Write down everything worrying you so your mind knows it's safe to let "
            "go for the night.",
        ),
    ),
    IntentRule(
        intent=IntentType.MOTIVATION,
        patterns=_rx(r"\b(motivat\w*|give up|quit|stop|can't do this|cant do this|hard)\b"),
        responses=(
            "\"The only way out is through.\" You are forging a new path, and that is incredibly hard work. "
            "But you are capable.",
            "Look at how far you've come. Even your worst day in recovery is better than your best day in active "
            "addiction. Keep going.",
            "You don't have to stay clean for the rest of your life right now. You just have to stay clean for "
            "today. Can you do that?",
            "Your future self is begging you not to give up. You are building the life you deserve, brick by brick.",
        ),
    ),
    IntentRule(
        intent=IntentType.HALT_CHECK,
        patterns=_rx(r"\b(halt|hungry|angry|tired)\b"),
        responses=(
            "The HALT method is a lifesaver. Let's check in: Are you Hungry, Angry, Lonely, or Tired right now?",
        ),
        action=FlowAction.START_HALT_FLOW,
    ),
)
