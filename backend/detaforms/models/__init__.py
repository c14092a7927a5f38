from detaforms.models.form import Form
from detaforms.models.form_editor import FormEditor
from detaforms.models.form_response import FormResponse
from detaforms.models.form_style import FormStyle
from detaforms.models.question import Question, QuestionOption

__all__ = [
    "Form",
    "FormEditor",
    "FormResponse",
    "FormStyle",
    "Question",
    "QuestionOption",
]
