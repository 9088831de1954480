# =============================================================================
# TESTES DE INTEGRAÇÃO - Endpoints
# =============================================================================
# Testes de integração usando FastAPI TestClient (sem servidor externo)
# =============================================================================

import pytest


def _create_published_quiz(client, title="Quiz HTTP", time_limit=None):
    """Cria quiz com uma TRUE_FALSE (2 pts) e uma ESSAY (2 pts) e publica."""
    response = client.post(
        "/assessment/quizzes",
        json={"course_id": "curso-1", "title": title, "time_limit_minutes": time_limit},
    )
    assert response.status_code == 201
    quiz_id = response.json()["id"]

    tf = client.post(
        f"/assessment/quizzes/{quiz_id}/questions",
        json={
            "text": "A terra e redonda?",
            "type": "true_false",
            "points": 2,
            "options": [
                {"id": "v", "text": "Verdadeiro", "is_correct": True},
                {"id": "f", "text": "Falso"},
            ],
        },
    )
    assert tf.status_code == 201

    essay = client.post(
        f"/assessment/quizzes/{quiz_id}/questions",
        json={"text": "Justifique.", "type": "essay", "points": 2},
    )
    assert essay.status_code == 201

    assert client.post(f"/assessment/quizzes/{quiz_id}/publish").status_code == 200
    return quiz_id, tf.json()["id"], essay.json()["id"]


class TestHealthEndpoints:
    """Testes dos endpoints de health check."""

    def test_root_returns_ok(self, client):
        """GET / - Deve retornar status ok."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_returns_config(self, client):
        """GET /health - Deve retornar configuração agrupada."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["config"]["storage"]["backend"] == "memory"


class TestAuthoringEndpoints:
    """Testes dos endpoints de autoria."""

    def test_create_and_get_quiz(self, client):
        """POST /assessment/quizzes - Deve criar quiz não publicado."""
        response = client.post(
            "/assessment/quizzes", json={"course_id": "curso-1", "title": "Novo"}
        )

        assert response.status_code == 201
        quiz = response.json()
        assert quiz["published"] is False
        assert quiz["passing_score"] == 60.0

        fetched = client.get(f"/assessment/quizzes/{quiz['id']}")
        assert fetched.json()["title"] == "Novo"

    def test_duplicate_title(self, client):
        """POST /assessment/quizzes - Título repetido retorna 422."""
        client.post("/assessment/quizzes", json={"course_id": "curso-1", "title": "Repetido"})
        response = client.post(
            "/assessment/quizzes", json={"course_id": "curso-1", "title": "Repetido"}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "validation_error"

    def test_invalid_question(self, client):
        """POST /questions - Questão degenerada retorna 422."""
        quiz_id = client.post(
            "/assessment/quizzes", json={"course_id": "curso-1", "title": "Q"}
        ).json()["id"]

        response = client.post(
            f"/assessment/quizzes/{quiz_id}/questions",
            json={
                "text": "Todas corretas",
                "type": "multiple_answer",
                "options": [
                    {"text": "A", "is_correct": True},
                    {"text": "B", "is_correct": True},
                ],
            },
        )

        assert response.status_code == 422

    def test_publish_empty_quiz(self, client):
        """POST /publish - Quiz sem questões retorna 422."""
        quiz_id = client.post(
            "/assessment/quizzes", json={"course_id": "curso-1", "title": "Vazio"}
        ).json()["id"]

        assert client.post(f"/assessment/quizzes/{quiz_id}/publish").status_code == 422

    def test_list_quizzes(self, client):
        """GET /assessment/quizzes - Lista filtrando publicados."""
        _create_published_quiz(client, "Publicado")
        client.post("/assessment/quizzes", json={"course_id": "curso-1", "title": "Rascunho"})

        all_quizzes = client.get("/assessment/quizzes", params={"course_id": "curso-1"}).json()
        published = client.get(
            "/assessment/quizzes", params={"course_id": "curso-1", "published_only": True}
        ).json()

        assert len(all_quizzes) == 2
        assert [q["title"] for q in published] == ["Publicado"]

    def test_delete_quiz_with_attempts(self, client):
        """DELETE /assessment/quizzes/{id} - Histórico impede remoção (409)."""
        quiz_id, _, _ = _create_published_quiz(client)
        client.post(f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"})

        response = client.delete(f"/assessment/quizzes/{quiz_id}")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "quiz_has_attempts"

    def test_delete_quiz(self, client):
        """DELETE /assessment/quizzes/{id} - Quiz sem tentativas é removido."""
        quiz_id = client.post(
            "/assessment/quizzes", json={"course_id": "curso-1", "title": "Descartavel"}
        ).json()["id"]

        assert client.delete(f"/assessment/quizzes/{quiz_id}").status_code == 204
        assert client.get(f"/assessment/quizzes/{quiz_id}").status_code == 404


class TestAttemptEndpoints:
    """Testes dos endpoints de tentativa."""

    def test_full_flow(self, client):
        """Fluxo completo: iniciar, responder, finalizar, corrigir, analytics."""
        quiz_id, tf_id, essay_id = _create_published_quiz(client)

        started = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        )
        assert started.status_code == 201
        attempt_id = started.json()["id"]
        assert started.json()["status"] == "in_progress"

        view = client.get(f"/assessment/attempts/{attempt_id}/view")
        assert view.status_code == 200
        assert len(view.json()["questions"]) == 2

        answer = client.put(
            f"/assessment/attempts/{attempt_id}/answers/{tf_id}",
            json={"selected_option_ids": ["v"]},
        )
        assert answer.status_code == 200
        assert answer.json()["selected_option_ids"] == ["v"]

        client.put(
            f"/assessment/attempts/{attempt_id}/answers/{essay_id}",
            json={"text_answer": "Porque sim."},
        )

        submitted = client.post(f"/assessment/attempts/{attempt_id}/submit")
        assert submitted.status_code == 200
        result = submitted.json()
        assert result["status"] == "completed"
        assert result["score"] == 2.0
        assert result["percentage_score"] == 50.0
        assert result["passed"] is False

        graded = client.post(
            f"/assessment/attempts/{attempt_id}/answers/{essay_id}/grade",
            json={"score": 1.5, "instructor_feedback": "Raso"},
        )
        assert graded.status_code == 200
        assert graded.json()["percentage_score"] == 87.5
        assert graded.json()["passed"] is True

        analytics = client.get(f"/assessment/quizzes/{quiz_id}/analytics")
        assert analytics.status_code == 200
        assert analytics.json()["completed_attempts"] == 1
        assert analytics.json()["pass_rate"] == 1.0

        summary = client.get(f"/assessment/quizzes/{quiz_id}/students/aluno-1")
        assert summary.json()["highest_score"] == 87.5

    def test_second_start_conflict(self, client):
        """POST /attempts - Segunda tentativa ativa retorna 409."""
        quiz_id, _, _ = _create_published_quiz(client)
        client.post(f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"})

        response = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "already_in_progress"

    def test_finalize_twice_conflict(self, client):
        """POST /submit - Segunda finalização retorna 409."""
        quiz_id, _, _ = _create_published_quiz(client)
        attempt_id = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        ).json()["id"]

        assert client.post(f"/assessment/attempts/{attempt_id}/submit").status_code == 200
        response = client.post(f"/assessment/attempts/{attempt_id}/submit")

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "attempt_not_active"

    def test_invalid_question(self, client):
        """PUT /answers - Questão de outro quiz retorna 422."""
        quiz_id, _, _ = _create_published_quiz(client)
        attempt_id = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        ).json()["id"]

        response = client.put(
            f"/assessment/attempts/{attempt_id}/answers/nao-existe",
            json={"selected_option_ids": ["v"]},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "invalid_question"

    def test_unknown_attempt(self, client):
        """GET /attempts/{id} - Tentativa inexistente retorna 404."""
        response = client.get("/assessment/attempts/nao-existe")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

    @pytest.mark.parametrize("action,status", [("expire", "timed_out"), ("abandon", "abandoned")])
    def test_terminal_actions(self, client, action, status):
        """POST /expire e /abandon - Encerram a tentativa."""
        quiz_id, _, _ = _create_published_quiz(client)
        attempt_id = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        ).json()["id"]

        response = client.post(f"/assessment/attempts/{attempt_id}/{action}")

        assert response.status_code == 200
        assert response.json()["status"] == status

    def test_expire_overdue_without_candidates(self, client):
        """POST /attempts/expire-overdue - Nada a expirar dentro do prazo."""
        quiz_id, _, _ = _create_published_quiz(client, time_limit=30)
        client.post(f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"})

        response = client.post("/assessment/attempts/expire-overdue")

        assert response.status_code == 200
        assert response.json() == {"expired": 0, "attempt_ids": []}


class TestHistoryEndpoints:
    """Testes dos endpoints de historico, revisao e quizzes disponiveis."""

    def test_list_attempts(self, client):
        """GET /assessment/attempts - Filtra por quiz e aluno."""
        quiz_id, _, _ = _create_published_quiz(client)
        first = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        ).json()["id"]
        client.post(f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-2"})

        by_quiz = client.get("/assessment/attempts", params={"quiz_id": quiz_id})
        by_both = client.get(
            "/assessment/attempts", params={"quiz_id": quiz_id, "student_id": "aluno-1"}
        )

        assert by_quiz.status_code == 200
        assert len(by_quiz.json()) == 2
        assert [a["id"] for a in by_both.json()] == [first]

    def test_list_attempts_unknown_quiz(self, client):
        """GET /assessment/attempts - Quiz inexistente retorna 404."""
        response = client.get("/assessment/attempts", params={"quiz_id": "nao-existe"})

        assert response.status_code == 404

    def test_review(self, client):
        """GET /attempts/{id}/review - Gabarito apenas apos a correcao."""
        quiz_id, tf_id, essay_id = _create_published_quiz(client)
        attempt_id = client.post(
            f"/assessment/quizzes/{quiz_id}/attempts", json={"student_id": "aluno-1"}
        ).json()["id"]
        client.put(
            f"/assessment/attempts/{attempt_id}/answers/{tf_id}",
            json={"selected_option_ids": ["f"]},
        )

        hidden = client.get(f"/assessment/attempts/{attempt_id}/review")
        assert hidden.status_code == 422

        client.post(f"/assessment/attempts/{attempt_id}/submit")
        review = client.get(f"/assessment/attempts/{attempt_id}/review")

        assert review.status_code == 200
        tf = review.json()["answers"][0]
        assert tf["question_id"] == tf_id
        assert tf["is_correct"] is False
        assert tf["selected_option_ids"] == ["f"]
        assert tf["correct_option_ids"] == ["v"]
        assert review.json()["answers"][1]["pending_review"] is True

    def test_available_quizzes(self, client):
        """GET /courses/{id}/available-quizzes - Apenas publicados."""
        _create_published_quiz(client, "Publicado")
        client.post("/assessment/quizzes", json={"course_id": "curso-1", "title": "Rascunho"})

        response = client.get("/assessment/courses/curso-1/available-quizzes")

        assert response.status_code == 200
        assert [q["title"] for q in response.json()] == ["Publicado"]
