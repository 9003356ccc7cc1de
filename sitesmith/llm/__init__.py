"""
LLM collaborators for initial site generation and iterative chat edits.
Supports OpenAI-compatible endpoints and Google Gemini behind BaseLLMClient.
"""
from dataclasses import dataclass
from typing import Protocol, Any, Dict, Optional, List, Sequence, Tuple
import base64
import mimetypes
import os
import json
import pathlib
import re
import jsonschema
import logging

from sitesmith.env import load_env
from sitesmith.errors import MissingCollaboratorResponse
from sitesmith.project import TechStack

logger = logging.getLogger(__name__)
load_env()

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

REACT_STACK_INSTRUCTIONS = """
- Use React via ES Modules (CDN).
- In index.html, import React, ReactDOM, and Babel from a CDN.
- Use <script type="text/babel" data-type="module">.
- Structure: index.html (entry), styles.css.
"""

HTML_STACK_INSTRUCTIONS = """
- Use HTML5, CSS, and Vanilla JS.
- Separate index.html, css/style.css, js/script.js.
"""

TAILWIND_INSTRUCTIONS = "\n- Use Tailwind CSS via CDN."

GENERATE_SYSTEM_TEMPLATE = """You are a Senior Frontend Engineer.
Task: Generate SOURCE CODE for a website.
Stack: {stack}.
Language Setting: The user speaks {language}. Ensure the 'description' field is in {language}, and any content inside the website (text, labels) is in {language} unless requested otherwise.
{stack_instructions}
IMPORTANT FORMATTING RULES:
1. DO NOT MINIFY THE CODE.
2. Use 2 spaces for indentation.
3. Include proper line breaks and whitespace.
4. The output must be human-readable and formatted.

Return a JSON object ONLY (no commentary) with the fields:
- siteName: string
- description: string
- files: array of {{"path": relative path such as "css/style.css", "content": full source code}}
"""

EDIT_SYSTEM_TEMPLATE = """You are an expert coding assistant.
You will receive the current file structure of a web project.
Your task is to modify the project based on the user's request.

IMPORTANT:
1. Respond in JSON format only.
2. 'explanation': A message to the user describing what you did (IN LANGUAGE: {language}).
3. 'actions': An array of changes.
   - 'create': Add a new file. Path and Content required.
   - 'update': Change existing file. Path and Content required (FULL CONTENT).
   - 'delete': Remove a file. Path required.
4. Maintain the existing architectural style.
5. The user's language is {language}. Ensure all explanations are in {language}.
6. DO NOT MINIFY CODE. Use standard indentation and line breaks.
"""

EDIT_PROMPT_TEMPLATE = """CURRENT PROJECT STRUCTURE AND CONTENT:
{file_context}

USER REQUEST: {instruction}
{attachment_context}"""

FILE_BLOCK_TEMPLATE = "\n--- START FILE: {path} ---\n{content}\n--- END FILE: {path} ---\n"

SITE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "siteName": {"type": "string"},
        "description": {"type": "string"},
        "files": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "path": {"type": "string"},
                    "content": {"type": "string"},
                },
                "required": ["path", "content"],
            },
        },
    },
    "required": ["siteName", "description", "files"],
}

EDIT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "explanation": {"type": "string"},
        "actions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": ["create", "update", "delete"]},
                    "path": {"type": "string"},
                    "content": {"type": "string"},
                },
                "required": ["type", "path"],
            },
        },
    },
    "required": ["explanation", "actions"],
}

_INVISIBLE_CHARS = re.compile("[\u200b-\u200d\ufeff]")
_NON_ASCII = re.compile(r"[^\x00-\x7f]")


@dataclass(frozen=True)
class Attachment:
    """A user-supplied file sent alongside a prompt."""

    name: str
    mime_type: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    @classmethod
    def from_path(cls, path) -> "Attachment":
        path = pathlib.Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "text/plain"
        return cls(name=path.name, mime_type=mime_type, data=path.read_bytes())


class LLMClient(Protocol):
    def generate_site(self, prompt: str, stack: TechStack, attachments: Sequence[Attachment] = (), language: str = "en") -> Dict[str, Any]: ...
    def suggest_edits(self, files: Sequence[Tuple[str, str]], instruction: str, attachments: Sequence[Attachment] = (), language: str = "en") -> Dict[str, Any]: ...


def clean_api_key(api_key: Optional[str]) -> str:
    """Strip whitespace, zero-width characters and anything non-ASCII pasted along with a key."""
    if not api_key:
        return ""
    return _NON_ASCII.sub("", _INVISIBLE_CHARS.sub("", api_key.strip()))


def stack_instructions(stack: TechStack) -> str:
    text = REACT_STACK_INSTRUCTIONS if stack.framework == "React" else HTML_STACK_INSTRUCTIONS
    if stack.styling == "Tailwind":
        text += TAILWIND_INSTRUCTIONS
    return text


def split_attachments(attachments: Sequence[Attachment], label: str = "File") -> Tuple[List[Attachment], str]:
    """Separate image attachments from text ones; text is inlined into the prompt."""
    images: List[Attachment] = []
    context = ""
    for attachment in attachments:
        if attachment.is_image:
            images.append(attachment)
        else:
            context += f"\n{label} {attachment.name}:\n{attachment.text()}\n"
    return images, context


def _validate_and_parse_json(text: str, schema: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not text or not text.strip():
        return None
    try:
        obj = json.loads(text)
    except ValueError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end == -1 or end <= start:
            logger.debug("No JSON object found in text")
            return None
        try:
            obj = json.loads(text[start : end + 1])
        except ValueError as e:
            logger.debug("Failed to parse extracted JSON: %s", e)
            return None
    try:
        jsonschema.validate(instance=obj, schema=schema)
    except jsonschema.ValidationError as e:
        logger.debug("JSON schema validation failed: %s", e.message)
        return None
    return obj


class BaseLLMClient:
    """
    Common implementation for the site/edit operations, independent of provider.
    Providers must implement _raw_generate(prompt, system, images, model) -> str.
    """

    model: Optional[str] = None

    def _raw_generate(self, prompt: str, system: Optional[str] = None, images: Sequence[Attachment] = (), model: Optional[str] = None) -> str:
        raise NotImplementedError

    def _call(self, op: str, prompt: str, system: str, images: Sequence[Attachment]) -> str:
        try:
            return self._raw_generate(prompt, system=system, images=images, model=self.model)
        except MissingCollaboratorResponse:
            raise
        except Exception as e:
            logger.warning("%s: provider call failed: %s", op, e)
            raise MissingCollaboratorResponse(f"{op} failed: {e}") from e

    def generate_site(self, prompt: str, stack: TechStack, attachments: Sequence[Attachment] = (), language: str = "en") -> Dict[str, Any]:
        images, attached = split_attachments(attachments)
        system = GENERATE_SYSTEM_TEMPLATE.format(stack=stack.label(), language=language, stack_instructions=stack_instructions(stack))
        text = self._call("generate_site", f"{prompt}\n{attached}", system, images)
        parsed = _validate_and_parse_json(text, SITE_SCHEMA)
        if parsed is None:
            logger.warning("generate_site: failed to parse/validate LLM response")
            raise MissingCollaboratorResponse("the model did not return a usable site")
        return parsed

    def suggest_edits(self, files: Sequence[Tuple[str, str]], instruction: str, attachments: Sequence[Attachment] = (), language: str = "en") -> Dict[str, Any]:
        images, attached = split_attachments(attachments, label="User Attached File")
        file_context = "".join(FILE_BLOCK_TEMPLATE.format(path=path, content=content) for path, content in files)
        prompt = EDIT_PROMPT_TEMPLATE.format(file_context=file_context, instruction=instruction, attachment_context=attached)
        system = EDIT_SYSTEM_TEMPLATE.format(language=language)
        text = self._call("suggest_edits", prompt, system, images)
        parsed = _validate_and_parse_json(text, EDIT_SCHEMA)
        if parsed is None:
            logger.warning("suggest_edits: failed to parse/validate LLM response")
            raise MissingCollaboratorResponse("the model did not return usable edits")
        return parsed


class OpenAICompatClient(BaseLLMClient):
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, model: Optional[str] = None):
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL")
        self.api_key = clean_api_key(api_key or os.getenv("OPENAI_API_KEY"))
        self.model = model or os.getenv("OPENAI_MODEL")
        if not self.api_key:
            raise MissingCollaboratorResponse("API key is missing")
        try:
            from openai import OpenAI
        except ImportError as e:
            raise RuntimeError("openai package required for OpenAICompatClient") from e
        self._client = OpenAI(base_url=self.base_url, api_key=self.api_key)

    def _raw_generate(self, prompt: str, system: Optional[str] = None, images: Sequence[Attachment] = (), model: Optional[str] = None, temperature: float = 0.2) -> str:
        model = model or self.model
        if not model:
            raise ValueError("model must be provided")
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        if images:
            content: List[Dict[str, Any]] = [{"type": "image_url", "image_url": {"url": img.data_uri()}} for img in images]
            content.append({"type": "text", "text": prompt})
            messages.append({"role": "user", "content": content})
        else:
            messages.append({"role": "user", "content": prompt})
        resp = self._client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        try:
            return resp.choices[0].message.content
        except (AttributeError, IndexError):
            return getattr(resp, "text", str(resp))


class GeminiClient(BaseLLMClient):
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = clean_api_key(api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"))
        self.model = model or os.getenv("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL
        if not self.api_key:
            raise MissingCollaboratorResponse("API key is missing")
        try:
            from google import genai
            from google.genai import types
        except ImportError as e:
            raise RuntimeError("google-genai package required for GeminiClient") from e
        self._types = types
        self._client = genai.Client(api_key=self.api_key)

    def _raw_generate(self, prompt: str, system: Optional[str] = None, images: Sequence[Attachment] = (), model: Optional[str] = None) -> str:
        model = model or self.model
        types = self._types
        contents: List[Any] = [types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images]
        contents.append(prompt)
        config = types.GenerateContentConfig(
            system_instruction=system,
            response_mime_type="application/json",
        )
        resp = self._client.models.generate_content(model=model, contents=contents, config=config)
        return getattr(resp, "text", None) or ""


def create_llm_client(kind: str, **kwargs) -> BaseLLMClient:
    kind = kind.lower()
    if kind in ("openai", "openai-compat", "openrouter", "custom"):
        return OpenAICompatClient(**kwargs)
    if kind in ("gemini", "google", "google-gemini"):
        return GeminiClient(**kwargs)
    raise ValueError(f"unknown llm client kind: {kind}")
