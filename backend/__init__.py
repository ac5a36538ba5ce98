"""Ask Your Documents - retrieval-augmented question answering over a document corpus.

Approaches combine a search collaborator and a chat model behind one
interface; the HTTP layer picks an approach per request by name and type.
"""

__version__ = "0.1.0"
