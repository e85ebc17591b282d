"""State machine driving the form, item selection and output screens of one user."""

import uuid
from typing import Awaitable, Callable, Iterable, List, Optional

from termcolor import colored

from forma.config.settings import Settings, get_settings
from forma.handlers.error_handler import (
    InputValidationError,
    InvalidTransitionError,
    MapExceptions,
    SessionBusyError,
)
from forma.models.design import (
    DesignTurn,
    FormInputs,
    InitialSuggestedItem,
    PriceTotal,
    SuggestedItem,
)
from forma.models.session import SelectionSnapshot, SessionState, SessionView
from forma.services.encoding_service.image_encoder import ImageEncoder, ImageSource
from forma.services.gateway_service.model_gateway import ModelGateway
from forma.services.parsing_service.pricing import aggregate_price_ranges
from forma.services.parsing_service.response_parser import ResponseParser
from forma.services.prompt_service.prompt_builder import PromptBuilder
from forma.services.session_service import selection as sel
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)


class DesignSession:
    """Hold one user's design flow and run its transitions.

    Only one transition runs at a time: ``busy`` is checked before every
    action and a second request is rejected with ``SessionBusyError``
    instead of being queued. Failures raised by the collaborators below the
    session are caught at the transition boundary, stored in ``error`` and
    the previous state is restored. New data is committed only after every
    call of a transition has succeeded.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        session_id: Optional[str] = None,
        settings: Optional[Settings] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        encoder: Optional[ImageEncoder] = None,
        parser: Optional[ResponseParser] = None,
    ):
        self.settings = settings or get_settings()
        self.session_id = session_id or uuid.uuid4().hex
        self.gateway = gateway
        self.prompt_builder = prompt_builder or PromptBuilder(settings=self.settings)
        self.encoder = encoder or ImageEncoder(settings=self.settings)
        self.parser = parser or ResponseParser(settings=self.settings)

        self.state = SessionState.COLLECTING_INPUTS
        self.busy = False
        self.error: Optional[str] = None
        self.error_type: Optional[str] = None

        self.inputs: Optional[FormInputs] = None
        self.suggestions: List[InitialSuggestedItem] = []
        self.selection = SelectionSnapshot()
        self.refinements: List[str] = []
        self.current_turn: Optional[DesignTurn] = None

    # Guards

    def _guard(self, action: str, allowed: Iterable[SessionState]) -> None:
        """Reject the action when busy or when the current screen does not offer it."""
        if self.busy:
            raise SessionBusyError()
        if self.state not in tuple(allowed):
            raise InvalidTransitionError(action, self.state.value)

    def _set_state(self, state: SessionState) -> None:
        logger.info(
            f"Session {self.session_id[:8]}: "
            f"{colored(self.state.value, 'cyan')} -> {colored(state.value, 'green')}"
        )
        self.state = state

    def _clear_error(self) -> None:
        self.error = None
        self.error_type = None

    async def _run(
        self,
        action: str,
        allowed: Iterable[SessionState],
        pending: SessionState,
        work: Callable[[], Awaitable[None]],
    ) -> None:
        """Run one asynchronous transition with busy flag, revert and error capture."""
        self._guard(action, allowed)
        previous = self.state
        self.busy = True
        self._clear_error()
        self._set_state(pending)
        token = AppLogger.bind_session(self.session_id)
        try:
            await work()
        except Exception as exc:
            logger.error(f"{action} failed", exc_info=exc)
            self.error, self.error_type = MapExceptions.to_user_message(exc)
            self._set_state(previous)
        finally:
            self.busy = False
            AppLogger.unbind_session(token)

    # Transitions

    async def submit_form(
        self,
        inputs: FormInputs,
        image_source: Optional[ImageSource] = None,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        clear_image: bool = False,
    ) -> None:
        """Ask for item suggestions; success moves to item selection.

        Without a new ``image_source`` the previously uploaded room photo is
        kept, unless ``clear_image`` asks to drop it.
        """

        async def work() -> None:
            form = inputs
            previous_image = self.inputs.room_image if self.inputs is not None else None
            if inputs.room_image is None and previous_image is not None and not clear_image:
                form = inputs.model_copy(update={"room_image": previous_image})
            # keep what the user typed even if the request fails
            self.inputs = form
            if image_source is not None:
                room_image = self.encoder.read(image_source, filename=filename, mime_type=mime_type)
                form = inputs.model_copy(update={"room_image": room_image})
                self.inputs = form
            if not form.has_content():
                raise InputValidationError(
                    "Please upload a room photo or describe the room, your goals or the vibe.",
                    field="form",
                )

            prompt = self.prompt_builder.build_suggestion_prompt(form)
            raw = await self.gateway.request_suggestions(prompt, self.encoder.encode(form.room_image))
            items = self.parser.parse_suggestions(raw)

            self.suggestions = items
            self.selection = sel.initial_selection(items)
            self.refinements = []
            self.current_turn = None
            self._set_state(SessionState.SELECTING_ITEMS)

        await self._run(
            "submit the form",
            (SessionState.COLLECTING_INPUTS,),
            SessionState.AWAITING_SUGGESTIONS,
            work,
        )

    def choose_option(self, item_name: str, option_name: str) -> SelectionSnapshot:
        """Pick a style option for an item."""
        self._guard("choose an option", (SessionState.SELECTING_ITEMS,))
        self.selection = sel.choose_option(self.selection, self.suggestions, item_name, option_name)
        return self.selection

    def toggle_item(self, item_name: str) -> SelectionSnapshot:
        """Include or exclude an item from the design."""
        self._guard("toggle an item", (SessionState.SELECTING_ITEMS,))
        self.selection = sel.toggle_item(self.selection, self.suggestions, item_name)
        return self.selection

    def selected_items(self) -> List[SuggestedItem]:
        """Included items as they would be sent to the generation request."""
        return sel.resolve_selected_items(self.selection, self.suggestions)

    def estimated_total(self) -> PriceTotal:
        """Price total over the included items."""
        return aggregate_price_ranges(
            item.estimated_price_range
            for item in self.suggestions
            if self.selection.is_included(item.name)
        )

    async def submit_selection(self) -> None:
        """Render the room with the selected items; success shows the output."""

        async def work() -> None:
            selected = self.selected_items()
            prompt = self.prompt_builder.build_generation_prompt(self.inputs, selected)
            response = await self.gateway.request_image(
                prompt, self.encoder.encode(self.inputs.room_image)
            )
            image = self.parser.extract_image(response)

            self.refinements = []
            self.current_turn = DesignTurn(
                turn=1, inputs=self.inputs, selected_items=selected, image=image
            )
            self._set_state(SessionState.SHOWING_OUTPUT)

        await self._run(
            "submit the selection",
            (SessionState.SELECTING_ITEMS,),
            SessionState.AWAITING_GENERATION,
            work,
        )

    async def redesign(self, text: str) -> None:
        """
        Re-render with a refinement appended to the design goals.

        Selected items carry over unchanged. The new goals are committed only
        when the image comes back; a failure keeps the previous image and goals.
        """
        self._guard("redesign", (SessionState.SHOWING_OUTPUT,))
        if not (text or "").strip():
            raise InputValidationError("Redesign prompt must not be empty.", field="prompt")

        async def work() -> None:
            refinements = self.refinements + [text.strip()]
            goals = self.prompt_builder.compose_design_goals(self.inputs.design_prompt, refinements)
            turn_inputs = self.inputs.with_design_prompt(goals)
            selected = list(self.current_turn.selected_items)

            prompt = self.prompt_builder.build_generation_prompt(
                turn_inputs, selected, refinement=text.strip()
            )
            response = await self.gateway.request_image(
                prompt, self.encoder.encode(turn_inputs.room_image)
            )
            image = self.parser.extract_image(response)

            self.refinements = refinements
            self.current_turn = DesignTurn(
                turn=self.current_turn.turn + 1,
                inputs=turn_inputs,
                selected_items=selected,
                image=image,
            )
            self._set_state(SessionState.SHOWING_OUTPUT)

        await self._run(
            "redesign",
            (SessionState.SHOWING_OUTPUT,),
            SessionState.AWAITING_REDESIGN,
            work,
        )

    async def describe_design(self) -> None:
        """Ask for a summary and shopping list of the current image."""

        async def work() -> None:
            turn = self.current_turn
            prompt = self.prompt_builder.build_summary_prompt(turn.inputs, turn.selected_items)
            raw = await self.gateway.request_summary(prompt, turn.image.image)
            summary = self.parser.parse_design_turn(raw)
            self.current_turn = turn.model_copy(update={"summary": summary})

        await self._run(
            "describe the design",
            (SessionState.SHOWING_OUTPUT,),
            SessionState.SHOWING_OUTPUT,
            work,
        )

    def back_to_form(self) -> None:
        """Discard suggestions and output; the submitted form stays for editing."""
        self._guard("go back to the form", (SessionState.SELECTING_ITEMS, SessionState.SHOWING_OUTPUT))
        self._clear_error()
        self.suggestions = []
        self.selection = SelectionSnapshot()
        self.refinements = []
        self.current_turn = None
        self._set_state(SessionState.COLLECTING_INPUTS)

    def back_to_selection(self) -> None:
        """Leave the output screen, keeping suggestions and the current selection."""
        self._guard("go back to the item selection", (SessionState.SHOWING_OUTPUT,))
        self._clear_error()
        self.refinements = []
        self.current_turn = None
        self._set_state(SessionState.SELECTING_ITEMS)

    # View

    def snapshot(self) -> SessionView:
        """Everything the presentation layer renders for the current screen."""
        inputs = self.inputs or FormInputs()
        turn = self.current_turn
        if turn is not None:
            inputs = turn.inputs
        return SessionView(
            session_id=self.session_id,
            state=self.state,
            busy=self.busy,
            error=self.error,
            error_type=self.error_type,
            existing_objects=inputs.existing_objects,
            design_prompt=inputs.design_prompt,
            design_vibe=inputs.design_vibe,
            room_dimensions=inputs.room_dimensions,
            has_room_image=inputs.room_image is not None,
            suggestions=list(self.suggestions),
            selection=dict(self.selection.choices),
            excluded_items=sorted(self.selection.excluded),
            estimated_total=self.estimated_total().display,
            selected_items=list(turn.selected_items) if turn else self.selected_items(),
            turn=turn.turn if turn else 0,
            image_url=turn.image.data_url if turn else None,
            summary=turn.summary if turn else None,
        )
