# closed set of edit tools: argument models, tool schema and call map
from typing import List, Dict, Any, Optional, Literal, Tuple, Callable

from pydantic import BaseModel, Field, ValidationError

from .errors import InvalidArgumentError
from .models import OperatorOutcome, ToolCall
from . import operators, ai_operators


class ChangeAllColorsArgs(BaseModel):
    """Change every accent colour of the report to one colour. Text and background neutrals are kept."""
    new_color: str = Field(..., min_length=1, description="Colour name (e.g. 'blue', 'light pink') or CSS colour value")


class ModifyCardStyleArgs(BaseModel):
    """Set one CSS property on a specific card, box or block found by its title."""
    search_text: str = Field(..., min_length=1, description="Title or visible text of the card")
    style_property: str = Field(..., min_length=1, description="CSS property, e.g. 'background', 'border-radius'")
    style_value: str = Field(..., min_length=1, description="New CSS value")


class ChangeBarColorArgs(BaseModel):
    """Change the colour of the left accent bar of a card found by its title."""
    search_text: str = Field(..., min_length=1, description="Title or visible text of the card")
    new_color: str = Field(..., min_length=1, description="Colour name or CSS colour value")


class AddIconArgs(BaseModel):
    """Add an emoji or icon next to the title of a card."""
    search_text: str = Field(..., min_length=1, description="Title or visible text of the card")
    icon: str = Field(..., min_length=1, description="Emoji or short icon text")
    position: Literal["before_title", "after_title"] = Field("before_title", description="Where to put the icon")


class DeleteElementArgs(BaseModel):
    """Delete a card, box or block found by its title."""
    search_text: str = Field(..., min_length=1, description="Title or visible text of the element to delete")


class MoveSectionArgs(BaseModel):
    """Move a whole section to another position. Indices are 0-based and refer to the current section list."""
    section_index: int = Field(..., description="Current index of the section to move")
    new_position: int = Field(..., description="Index the section should end up at")


class AddSectionArgs(BaseModel):
    """Add a new section to the report."""
    title: str = Field(..., min_length=1, description="Title of the new section")
    position: int = Field(..., description="Index of the section after which the new one is inserted")
    generate_content: bool = Field(False, description="Write content for the section from the document")


class ModifySectionArgs(BaseModel):
    """Expand, summarize, regenerate or delete a section by index."""
    section_index: int = Field(..., description="0-based index of the section")
    action: Literal["expand", "summarize", "regenerate", "delete"] = Field(..., description="What to do with the section")


class RecreateCardArgs(BaseModel):
    """Rebuild one card from scratch in the same visual style."""
    search_text: str = Field(..., min_length=1, description="Title or visible text of the card")
    instructions: Optional[str] = Field(None, description="What the recreated card should contain or look like")


# handlers share one signature: (html, args, llm, pdf_content) -> OperatorOutcome
def _change_all_colors(html, args: ChangeAllColorsArgs, llm=None, pdf_content=None):
    return operators.change_all_colors(html, args.new_color)


def _modify_card_style(html, args: ModifyCardStyleArgs, llm=None, pdf_content=None):
    return operators.modify_card_style(html, args.search_text, args.style_property, args.style_value)


def _change_bar_color(html, args: ChangeBarColorArgs, llm=None, pdf_content=None):
    return operators.change_bar_color(html, args.search_text, args.new_color)


def _add_icon(html, args: AddIconArgs, llm=None, pdf_content=None):
    return operators.add_icon(html, args.search_text, args.icon, args.position)


def _delete_element(html, args: DeleteElementArgs, llm=None, pdf_content=None):
    return operators.delete_element(html, args.search_text)


def _move_section(html, args: MoveSectionArgs, llm=None, pdf_content=None):
    return operators.move_section(html, args.section_index, args.new_position)


def _add_section(html, args: AddSectionArgs, llm=None, pdf_content=None):
    if args.generate_content:
        return ai_operators.add_section_with_content(html, args.title, args.position, llm=llm, pdf_content=pdf_content)
    return operators.add_section(html, args.title, args.position)


def _modify_section(html, args: ModifySectionArgs, llm=None, pdf_content=None):
    return ai_operators.modify_section(html, args.section_index, args.action, llm=llm, pdf_content=pdf_content)


def _recreate_card(html, args: RecreateCardArgs, llm=None, pdf_content=None):
    return ai_operators.recreate_card(html, args.search_text, args.instructions, llm=llm, pdf_content=pdf_content)


Handler = Callable[..., OperatorOutcome]

ARGS_MODELS: Dict[str, type] = {
    "change_all_colors": ChangeAllColorsArgs,
    "modify_card_style": ModifyCardStyleArgs,
    "change_bar_color": ChangeBarColorArgs,
    "add_icon": AddIconArgs,
    "delete_element": DeleteElementArgs,
    "move_section": MoveSectionArgs,
    "add_section": AddSectionArgs,
    "modify_section": ModifySectionArgs,
    "recreate_card": RecreateCardArgs,
}

CALL_MAP: Dict[str, Handler] = {
    "change_all_colors": _change_all_colors,
    "modify_card_style": _modify_card_style,
    "change_bar_color": _change_bar_color,
    "add_icon": _add_icon,
    "delete_element": _delete_element,
    "move_section": _move_section,
    "add_section": _add_section,
    "modify_section": _modify_section,
    "recreate_card": _recreate_card,
}


# ollama / openai style function definitions for the classifier
def tool_definitions() -> List[Dict[str, Any]]:
    tools = []
    for name, model in ARGS_MODELS.items():
        schema = model.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        tools.append({
            "type": "function",
            "function": {
                "name": name,
                "description": " ".join((model.__doc__ or "").split()),
                "parameters": schema
            }
        })
    return tools


def get_tools_and_call_map() -> Tuple[List[Dict[str, Any]], Dict[str, Handler]]:
    return tool_definitions(), CALL_MAP


# check a classifier call against the closed schema
def validate_tool_call(call: ToolCall) -> BaseModel:
    model = ARGS_MODELS.get(call.name)
    if model is None:
        raise InvalidArgumentError(f"Unknown tool '{call.name}'", context={"tool": call.name})
    try:
        return model.model_validate(call.arguments)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidArgumentError(
            f"Invalid arguments for {call.name}: {problems}",
            cause=e,
            context={"tool": call.name, "arguments": call.arguments}
        )
