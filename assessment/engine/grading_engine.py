"""Grading Engine - Correcao automatica por tipo de questao.

Funcoes puras: recebem snapshots imutaveis de questao e resposta e devolvem
um `GradeResult`. Nao ha I/O nem mutacao de estado.

Regras:
    - MULTIPLE_CHOICE / TRUE_FALSE: exatamente uma alternativa marcada e correta
    - MULTIPLE_ANSWER: credito parcial (acertos - penalidade por erros)
    - SHORT_ANSWER: comparacao sem caixa e sem espacos nas pontas
    - ESSAY: nunca corrigida automaticamente (score 0, aguarda professor)

Example:
    >>> result = grade(question, answer)
    >>> result.score, result.is_correct
    (5.0, False)
"""

from collections.abc import Iterable
from typing import Optional

from core.exceptions import ValidationError

from ..models.enums import QuestionType
from ..models.schemas import GradeResult, Question, Quiz, StudentAnswer


def _grade_single_select(question: Question, answer: StudentAnswer) -> GradeResult:
    selected = answer.selected_option_ids
    if len(selected) != 1:
        return GradeResult(score=0.0, is_correct=False)

    option = question.get_option(next(iter(selected)))
    if option is None or not option.is_correct:
        return GradeResult(score=0.0, is_correct=False)

    return GradeResult(score=float(question.points), is_correct=True)


def _grade_multiple_answer(question: Question, answer: StudentAnswer) -> GradeResult:
    total_options = len(question.options)
    correct_options = len(question.correct_options)

    # Ids que nao pertencem a questao sao ignorados
    selected = [question.get_option(option_id) for option_id in answer.selected_option_ids]
    selected = [option for option in selected if option is not None]
    correct_selections = sum(1 for option in selected if option.is_correct)
    incorrect_selections = len(selected) - correct_selections

    correct_ratio = correct_selections / correct_options if correct_options > 0 else 0.0

    incorrect_options = total_options - correct_options
    incorrect_penalty = incorrect_selections / incorrect_options if incorrect_options > 0 else 0.0

    partial_score = max(0.0, correct_ratio - incorrect_penalty)
    score = min(partial_score, 1.0) * question.points

    is_correct = (
        correct_options > 0
        and correct_selections == correct_options
        and incorrect_selections == 0
    )
    return GradeResult(score=score, is_correct=is_correct)


def _normalize_text(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def _grade_short_answer(question: Question, answer: StudentAnswer) -> GradeResult:
    given = _normalize_text(answer.text_answer)
    if not given:
        return GradeResult(score=0.0, is_correct=False)

    for option in question.correct_options:
        if given == _normalize_text(option.text):
            return GradeResult(score=float(question.points), is_correct=True)

    return GradeResult(score=0.0, is_correct=False)


def _grade_essay(question: Question, answer: StudentAnswer) -> GradeResult:
    return GradeResult(score=0.0, is_correct=False, manually_graded=True)


_GRADERS = {
    QuestionType.MULTIPLE_CHOICE: _grade_single_select,
    QuestionType.TRUE_FALSE: _grade_single_select,
    QuestionType.MULTIPLE_ANSWER: _grade_multiple_answer,
    QuestionType.SHORT_ANSWER: _grade_short_answer,
    QuestionType.ESSAY: _grade_essay,
}


def grade(question: Question, answer: StudentAnswer) -> GradeResult:
    """Corrige uma resposta de acordo com o tipo da questao.

    Args:
        question: Questao respondida
        answer: Resposta do aluno para essa questao

    Returns:
        GradeResult com score em [0, question.points]
    """
    result = _GRADERS[question.type](question, answer)

    # Questao de zero pontos nunca gera pontuacao
    if question.points <= 0 and result.score != 0:
        return result.model_copy(update={"score": 0.0})
    return result


def apply_grade(answer: StudentAnswer, result: GradeResult) -> StudentAnswer:
    """Retorna copia da resposta com o resultado da correcao aplicado."""
    return answer.model_copy(
        update={
            "score": result.score,
            "is_correct": result.is_correct,
            "manually_graded": result.manually_graded,
            "pending_review": result.manually_graded,
        }
    )


def total_score(answers: Iterable[StudentAnswer]) -> float:
    return sum(answer.score or 0.0 for answer in answers)


def percentage_of(score: float, quiz: Quiz, precision: Optional[int] = 2) -> float:
    """Percentual da pontuacao; 0 quando o quiz nao vale pontos.

    Com `precision=None` o valor nao e arredondado (usado para decidir a
    aprovacao).
    """
    total_possible = quiz.total_possible_score
    if total_possible == 0:
        return 0.0
    percentage = score / total_possible * 100
    return percentage if precision is None else round(percentage, precision)


def validate_question(question: Question) -> None:
    """Valida uma questao no momento da autoria.

    Raises:
        ValidationError: Se a configuracao tornaria a correcao degenerada
    """
    details = {"question_id": question.id, "type": question.type.value}
    correct = len(question.correct_options)
    incorrect = len(question.options) - correct

    if question.points < 1:
        raise ValidationError("Questao deve valer ao menos 1 ponto", details)

    if question.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
        if correct != 1:
            raise ValidationError(
                "Questao de escolha unica deve ter exatamente uma alternativa correta",
                {**details, "correct_options": correct},
            )
        if question.type == QuestionType.TRUE_FALSE and len(question.options) != 2:
            raise ValidationError(
                "Questao verdadeiro/falso deve ter exatamente duas alternativas",
                {**details, "options": len(question.options)},
            )
        if question.type == QuestionType.MULTIPLE_CHOICE and len(question.options) < 2:
            raise ValidationError(
                "Questao de multipla escolha deve ter ao menos duas alternativas",
                {**details, "options": len(question.options)},
            )

    elif question.type == QuestionType.MULTIPLE_ANSWER:
        if correct == 0 or incorrect == 0:
            raise ValidationError(
                "Questao de multiplas respostas precisa de alternativas corretas e incorretas",
                {**details, "correct_options": correct, "incorrect_options": incorrect},
            )

    elif question.type == QuestionType.SHORT_ANSWER:
        if correct == 0:
            raise ValidationError("Questao de resposta curta precisa de resposta aceita", details)
        if incorrect > 0:
            raise ValidationError(
                "Respostas aceitas de SHORT_ANSWER devem ser todas corretas",
                {**details, "incorrect_options": incorrect},
            )

    elif question.type == QuestionType.ESSAY and question.options:
        raise ValidationError("Questao dissertativa nao possui alternativas", details)

    option_ids = [option.id for option in question.options]
    if len(option_ids) != len(set(option_ids)):
        raise ValidationError("IDs de alternativas duplicados", details)
