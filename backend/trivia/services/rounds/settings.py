from dataclasses import dataclass


@dataclass(frozen=True)
class RoundSettings:
    time_per_question_sec: int = 60
    min_timer_sec: int = 15
    max_timer_sec: int = 300
    accelerated_window_sec: int = 10
    min_question_count: int = 3
    default_max_questions: int = 6
    min_players: int = 2

    @classmethod
    def from_config(cls, config) -> 'RoundSettings':
        defaults = cls()
        return cls(
            time_per_question_sec=int(config.get('TIME_PER_QUESTION_SEC', defaults.time_per_question_sec)),
            min_timer_sec=int(config.get('MIN_TIMER_SEC', defaults.min_timer_sec)),
            max_timer_sec=int(config.get('MAX_TIMER_SEC', defaults.max_timer_sec)),
            accelerated_window_sec=int(config.get('ACCELERATED_WINDOW_SEC', defaults.accelerated_window_sec)),
            min_question_count=int(config.get('MIN_QUESTION_COUNT', defaults.min_question_count)),
            default_max_questions=int(config.get('DEFAULT_MAX_QUESTIONS', defaults.default_max_questions)),
            min_players=int(config.get('MIN_PLAYERS', defaults.min_players)),
        )
