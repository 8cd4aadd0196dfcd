"""
QA: answer questions with an LLM grounded in retrieved SQuAD passages.
"""

from squad_rag.qa.answer import Answer, answer_question

__all__ = ["Answer", "answer_question"]
