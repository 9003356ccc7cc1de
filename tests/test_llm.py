import json
import pytest
from sitesmith.errors import MissingCollaboratorResponse
from sitesmith.llm import Attachment, BaseLLMClient, clean_api_key, create_llm_client, stack_instructions
from sitesmith.project import TechStack

SITE = {
    "siteName": "Bakery",
    "description": "A bakery landing page",
    "files": [
        {"path": "index.html", "content": "<html></html>"},
        {"path": "css/style.css", "content": "body {}"},
    ],
}

class Recorder(BaseLLMClient):
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def _raw_generate(self, prompt, system=None, images=(), model=None):
        self.calls.append({"prompt": prompt, "system": system, "images": list(images)})
        return self.reply

def test_generate_site_success():
    client = Recorder(json.dumps(SITE))
    site = client.generate_site("bakery site", TechStack(), language="es")
    assert site["siteName"] == "Bakery"
    assert len(site["files"]) == 2
    system = client.calls[0]["system"]
    assert "HTML/JS + CSS" in system
    assert "The user speaks es" in system

def test_generate_site_extracts_json_from_chatter():
    client = Recorder("Sure! Here you go:\n" + json.dumps(SITE) + "\nEnjoy.")
    assert client.generate_site("x", TechStack())["description"] == "A bakery landing page"

def test_generate_site_parse_failure():
    client = Recorder("no json here")
    with pytest.raises(MissingCollaboratorResponse):
        client.generate_site("x", TechStack())

def test_generate_site_schema_failure():
    client = Recorder(json.dumps({"siteName": "x", "files": [{"path": "a.html"}]}))
    with pytest.raises(MissingCollaboratorResponse):
        client.generate_site("x", TechStack())

class Exploding(BaseLLMClient):
    def _raw_generate(self, prompt, system=None, images=(), model=None):
        raise ConnectionError("network down")

def test_provider_errors_become_missing_response():
    with pytest.raises(MissingCollaboratorResponse) as exc_info:
        Exploding().generate_site("x", TechStack())
    assert isinstance(exc_info.value.__cause__, ConnectionError)

def test_suggest_edits_builds_file_context():
    reply = {"explanation": "Done", "actions": [{"type": "update", "path": "index.html", "content": "<p>hi</p>"}]}
    client = Recorder(json.dumps(reply))
    res = client.suggest_edits([("index.html", "<html></html>"), ("css/style.css", "body {}")], "say hi", language="ru")
    assert res["actions"][0]["type"] == "update"
    prompt = client.calls[0]["prompt"]
    assert "--- START FILE: css/style.css ---\nbody {}\n--- END FILE: css/style.css ---" in prompt
    assert "USER REQUEST: say hi" in prompt
    assert "IN LANGUAGE: ru" in client.calls[0]["system"]

def test_suggest_edits_rejects_unknown_action_type():
    reply = {"explanation": "x", "actions": [{"type": "rename", "path": "a"}]}
    with pytest.raises(MissingCollaboratorResponse):
        Recorder(json.dumps(reply)).suggest_edits([], "rename things")

def test_attachments_split_between_images_and_text():
    reply = {"explanation": "ok", "actions": []}
    client = Recorder(json.dumps(reply))
    logo = Attachment("logo.png", "image/png", b"\x89PNG")
    notes = Attachment("brief.txt", "text/plain", b"use blue")
    client.suggest_edits([], "restyle", attachments=[logo, notes])
    call = client.calls[0]
    assert call["images"] == [logo]
    assert "User Attached File brief.txt:\nuse blue" in call["prompt"]
    assert logo.data_uri().startswith("data:image/png;base64,")

def test_stack_instructions():
    assert "Vanilla JS" in stack_instructions(TechStack())
    react = stack_instructions(TechStack(framework="React", styling="Tailwind"))
    assert "React" in react and "Tailwind" in react

def test_clean_api_key():
    assert clean_api_key("  abc\u200bdef\ufeff  ") == "abcdef"
    assert clean_api_key("këy") == "ky"
    assert clean_api_key(None) == ""

def test_factory_rejects_unknown_kind():
    with pytest.raises(ValueError):
        create_llm_client("nonsense")

def test_factory_requires_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(MissingCollaboratorResponse):
        create_llm_client("gemini", api_key="")
