"""Round lifecycle engine.

A match alternates ANSWERING and RATING phases per question. Every phase
instance is identified by the lobby's ``phase_nonce``; timers, manual
advances and collectors compare against it so that at most one transition
is committed per nonce no matter how many triggers race.
"""
