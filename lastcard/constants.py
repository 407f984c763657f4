"""Game constants for Last Card."""

# Game type tag of the card game; sessions without a tag default to it
CARD_GAME_TYPE = "lastcard"

# Table limits
MIN_PLAYERS = 2
HAND_SIZE = 7
DECK_SIZE = 108

# Times the starting card is cycled to the bottom while it is a wild
MAX_STARTING_CARD_RETRIES = 10

# Cards forced on the next player
DRAW_TWO_PENALTY = 2
WILD_DRAW_FOUR_PENALTY = 4

# Negative acknowledgement code sent to the initiator of a failed lobby operation
NACK_CODE = -1
