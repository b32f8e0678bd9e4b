from statemachine import State, StateMachine

from memory_game.models import RoundState

IDLE = 'idle'


class RoundFSM(StateMachine):
    """Guards the round lifecycle.

    showing -> paused -> awaiting_answer -> showing_result -> showing ...
    `restart` enters a fresh showing state from anywhere; `stop` parks the
    machine in idle on teardown. The controller owns timers and scoring;
    this class only rejects transitions that make no sense.
    """

    idle = State(IDLE, value=IDLE, initial=True)
    showing = State(RoundState.showing.value, value=RoundState.showing.value)
    paused = State(RoundState.paused.value, value=RoundState.paused.value)
    awaiting_answer = State(RoundState.awaiting_answer.value, value=RoundState.awaiting_answer.value)
    showing_result = State(RoundState.showing_result.value, value=RoundState.showing_result.value)

    hide = showing.to(paused)
    prompt = paused.to(awaiting_answer)
    score = awaiting_answer.to(showing_result)
    advance = showing_result.to(showing)
    restart = (
        idle.to(showing)
        | showing.to(showing)
        | paused.to(showing)
        | awaiting_answer.to(showing)
        | showing_result.to(showing)
    )
    stop = (
        idle.to(idle)
        | showing.to(idle)
        | paused.to(idle)
        | awaiting_answer.to(idle)
        | showing_result.to(idle)
    )

    @property
    def state_value(self) -> str:
        return str(self.current_state_value)

    @property
    def round_state(self):
        if self.state_value == IDLE:
            return None
        return RoundState(self.state_value)
