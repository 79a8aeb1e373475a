"""Fake OpenAI client, scripted prompter and JSON helpers shared by the tests."""

import asyncio
import json
import re
from types import SimpleNamespace

import httpx

from ltranslate.utils import Language

GERMAN = Language("de", "German")
FRENCH = Language("fr", "French")


def make_response(content, finish_reason="stop", refusal=None):
    """Build an object shaped like a chat completion response."""
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def make_status_error(cls, status, body=None):
    """Build an openai APIStatusError subclass instance."""
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return cls("error", response=response, body=body)


def make_request():
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def parse_request(kwargs):
    """Extract (language name, source strings) from a chat completion call."""
    prompt = kwargs["messages"][1]["content"]
    head, payload, _ = prompt.split("```")
    language = re.search(r"English to (.+):\n$", head).group(1)
    return language, json.loads(payload)


def tag_translation(kwargs):
    """Default handler: prefix every value with the target language name."""
    language, strings = parse_request(kwargs)
    return make_response(
        json.dumps({key: f"[{language}] {text}" for key, text in strings.items()}, ensure_ascii=False)
    )


class FakeCompletions:
    def __init__(self, handler, delay=0):
        self.handler = handler
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.handler(kwargs)
        finally:
            self.in_flight -= 1
        if isinstance(result, Exception):
            raise result
        return result


class FakeClient:
    """
    Stands in for openai.AsyncOpenAI; ``handler`` maps call kwargs to a response.

    With a ``delay`` every call stays in flight for that many seconds, so
    ``peak_in_flight`` shows how many requests overlapped.
    """

    def __init__(self, handler=tag_translation, delay=0):
        self.completions = FakeCompletions(handler, delay)
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    @property
    def calls(self):
        return self.completions.calls

    @property
    def peak_in_flight(self):
        return self.completions.peak_in_flight

    def languages_called(self):
        return [parse_request(call)[0] for call in self.calls]

    def keys_sent(self, language_name=None):
        keys = []
        for call in self.calls:
            language, strings = parse_request(call)
            if language_name is None or language == language_name:
                keys.extend(strings)
        return keys


class StubPrompter:
    """Prompter returning scripted answers and recording what was asked."""

    def __init__(self, confirm=True, texts=(), option=0, language=None, languages=()):
        self.confirm_answer = confirm
        self.texts = list(texts)
        self.option = option
        self.language = language
        self.languages = list(languages)
        self.prompts = []
        self.preselected = None

    def confirm(self, prompt, default=True):
        self.prompts.append(prompt)
        return self.confirm_answer

    def input_text(self, prompt, default=None):
        self.prompts.append(prompt)
        if self.texts:
            return self.texts.pop(0)
        return default

    def select_option(self, prompt, options):
        self.prompts.append(prompt)
        return self.option

    def select_language(self, options, prompt):
        self.prompts.append(prompt)
        return self.language

    def select_languages(self, options, prompt, preselected=()):
        self.prompts.append(prompt)
        self.preselected = list(preselected)
        return list(self.languages)


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))
