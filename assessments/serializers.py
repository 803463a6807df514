from rest_framework import serializers

from .models import AnswerRecord, Attempt


class AnswerRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = AnswerRecord
        fields = ['question', 'value', 'is_correct', 'score', 'comment']


class AttemptSerializer(serializers.ModelSerializer):
    """Full attempt, for the owning instructor and admins."""
    answers = AnswerRecordSerializer(many=True, read_only=True)
    student_email = serializers.CharField(source='student.email', read_only=True)
    exam_title = serializers.CharField(source='exam.title', read_only=True)

    class Meta:
        model = Attempt
        fields = [
            'id', 'exam', 'exam_title', 'student', 'student_email', 'number', 'state',
            'raw_score', 'percentage', 'started_at', 'submitted_at', 'elapsed_minutes',
            'feedback', 'answers',
        ]
        read_only_fields = fields


class StudentAttemptSerializer(AttemptSerializer):
    """
    Attempt as its owner sees it.

    Per-answer correctness stays hidden until the attempt is graded and the
    exam reveals answers.
    """

    def to_representation(self, instance):
        data = super().to_representation(instance)
        reveal = instance.state == Attempt.State.GRADED and instance.exam.show_answers
        if not reveal:
            for answer in data['answers']:
                answer.pop('is_correct', None)
        return data


class RankedAttemptSerializer(serializers.ModelSerializer):
    student_email = serializers.CharField(source='student.email', read_only=True)

    class Meta:
        model = Attempt
        fields = ['id', 'student', 'student_email', 'number', 'raw_score', 'percentage', 'submitted_at', 'elapsed_minutes']
        read_only_fields = fields


# --- Request payloads ---

class SubmittedAnswerSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    answer = serializers.JSONField(required=False, allow_null=True)


class SubmitAttemptSerializer(serializers.Serializer):
    answers = SubmittedAnswerSerializer(many=True)


class QuestionGradeSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    score = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class ManualGradeSerializer(serializers.Serializer):
    grades = QuestionGradeSerializer(many=True)
    feedback = serializers.CharField(required=False, allow_blank=True)
