# aula_platform/exams/serializers.py
import random

from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from cores.models import PlatformSetting

from . import availability, services
from .models import Exam, Option, Question

# --- Helper Serializers ---

class OptionSerializer(serializers.ModelSerializer):
    key = serializers.CharField(max_length=20, required=False, allow_blank=True)

    class Meta:
        model = Option
        fields = ['key', 'text', 'is_correct']


class PublicOptionSerializer(serializers.ModelSerializer):
    """Option without its correctness flag."""
    class Meta:
        model = Option
        fields = ['key', 'text']


class ConfigurationSerializer(serializers.Serializer):
    duration_minutes = serializers.IntegerField(min_value=1, required=False)
    max_attempts = serializers.IntegerField(min_value=1, required=False)
    show_answers = serializers.BooleanField(required=False)
    shuffle_questions = serializers.BooleanField(required=False)
    shuffle_options = serializers.BooleanField(required=False)
    passing_score = serializers.IntegerField(min_value=0, max_value=100, required=False)


# --- Question Serializers ---

class QuestionSerializer(serializers.ModelSerializer):
    options = OptionSerializer(many=True, required=False)
    order = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    correct_value = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = Question
        fields = ['id', 'question_type', 'prompt', 'options', 'correct_value', 'weight', 'order']
        read_only_fields = ['id']

    def validate_weight(self, value):
        if value < 0:
            raise serializers.ValidationError("Weight cannot be negative.")
        return value

    def validate(self, attrs):
        q_type = attrs.get('question_type')
        options = attrs.get('options') or []

        if q_type == Question.QuestionType.MULTIPLE_CHOICE:
            if len(options) < 2:
                raise serializers.ValidationError({'options': "Multiple choice needs at least two options."})
            if sum(1 for opt in options if opt.get('is_correct')) > 1:
                raise serializers.ValidationError({'options': "Only one option can be marked correct."})
            keys = [opt.get('key') or services.option_key(i) for i, opt in enumerate(options)]
            if len(set(keys)) != len(keys):
                raise serializers.ValidationError({'options': "Option keys must be unique."})
        elif options:
            raise serializers.ValidationError({'options': "Only multiple choice questions take options."})

        if q_type == Question.QuestionType.TRUE_FALSE:
            value = (attrs.get('correct_value') or '').strip().lower()
            if value not in ('true', 'false'):
                raise serializers.ValidationError({'correct_value': "True/false questions need 'true' or 'false'."})
            attrs['correct_value'] = value
        return attrs


class PublicQuestionSerializer(serializers.ModelSerializer):
    """What a student sees before answers may be revealed."""
    options = PublicOptionSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'question_type', 'prompt', 'options', 'weight', 'order']


# --- Exam Serializers ---

class AvailabilityMixin:

    def _now(self):
        return self.context.get('now') or timezone.now()

    def get_effective_state(self, obj):
        return availability.resolve_state(obj.state, obj.open_at, obj.close_at, self._now())

    def get_availability(self, obj):
        return availability.summarize(obj.state, obj.open_at, obj.close_at, self._now())


class ExamSerializer(AvailabilityMixin, serializers.ModelSerializer):
    """Full record for the owning instructor and admins. Also used for writes."""
    course = serializers.IntegerField(source='course_id')
    instructor = serializers.PrimaryKeyRelatedField(read_only=True)
    configuration = ConfigurationSerializer(source='*', required=False)
    questions = QuestionSerializer(many=True, required=False)
    effective_state = serializers.SerializerMethodField()
    availability = serializers.SerializerMethodField()
    statistics = serializers.SerializerMethodField()

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'course', 'instructor', 'configuration',
            'open_at', 'close_at', 'total_weight', 'state', 'effective_state',
            'availability', 'questions', 'statistics', 'created_at', 'updated_at',
        ]
        read_only_fields = ['total_weight', 'state', 'created_at', 'updated_at']

    def get_statistics(self, obj):
        return {
            'graded_count': obj.stats_graded_count,
            'average': obj.stats_average,
            'passed': obj.stats_passed,
            'failed': obj.stats_failed,
        }

    def validate(self, attrs):
        open_at = attrs.get('open_at', getattr(self.instance, 'open_at', None))
        close_at = attrs.get('close_at', getattr(self.instance, 'close_at', None))
        if open_at and close_at and open_at >= close_at:
            raise serializers.ValidationError({'close_at': "The close time must be after the open time."})
        if self.instance is not None and 'course_id' in attrs and attrs['course_id'] != self.instance.course_id:
            raise serializers.ValidationError({'course': "An exam cannot move to another course."})
        return attrs

    def create(self, validated_data):
        questions = validated_data.pop('questions', [])
        course_id = validated_data.pop('course_id')

        # Fill configuration gaps from the platform defaults
        defaults = PlatformSetting.load()
        validated_data.setdefault('duration_minutes', defaults.default_exam_duration)
        validated_data.setdefault('max_attempts', defaults.default_max_attempts)
        validated_data.setdefault('passing_score', defaults.default_pass_mark)

        return services.create_exam(self.context['request'].user, course_id, questions, **validated_data)

    def update(self, instance, validated_data):
        questions = validated_data.pop('questions', None)
        validated_data.pop('course_id', None)
        # A refused question swap must not leave the other edits saved
        with transaction.atomic():
            instance = super().update(instance, validated_data)
            if questions is not None:
                services.replace_questions(instance, questions)
        return instance


class ExamListSerializer(AvailabilityMixin, serializers.ModelSerializer):
    course = serializers.CharField(source='course.code', read_only=True)
    effective_state = serializers.SerializerMethodField()
    availability = serializers.SerializerMethodField()
    total_questions = serializers.IntegerField(source='questions.count', read_only=True)

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'course', 'duration_minutes', 'max_attempts', 'open_at', 'close_at',
            'total_weight', 'total_questions', 'state', 'effective_state', 'availability',
        ]


class StudentExamSerializer(AvailabilityMixin, serializers.ModelSerializer):
    """
    Exam as seen by an enrolled student.

    Correct answers only appear when the exam reveals them and the student
    already has a graded attempt. Only the caller's own attempts are listed.
    """
    course = serializers.CharField(source='course.code', read_only=True)
    configuration = ConfigurationSerializer(source='*', read_only=True)
    effective_state = serializers.SerializerMethodField()
    availability = serializers.SerializerMethodField()
    questions = serializers.SerializerMethodField()
    my_attempts = serializers.SerializerMethodField()

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'course', 'configuration', 'open_at', 'close_at',
            'total_weight', 'effective_state', 'availability', 'questions', 'my_attempts',
        ]

    def _student(self):
        return self.context['request'].user

    def _own_attempts(self, obj):
        return [a for a in obj.attempts.all() if a.student_id == self._student().pk]

    def reveals_answers(self, obj):
        from assessments.models import Attempt

        return obj.show_answers and any(a.state == Attempt.State.GRADED for a in self._own_attempts(obj))

    def get_questions(self, obj):
        questions = list(obj.questions.all())
        rng = random.Random(f"{obj.pk}:{self._student().pk}")
        if obj.shuffle_questions:
            rng.shuffle(questions)

        serializer_class = QuestionSerializer if self.reveals_answers(obj) else PublicQuestionSerializer
        data = serializer_class(questions, many=True).data
        if obj.shuffle_options:
            for item in data:
                rng.shuffle(item['options'])
        return data

    def get_my_attempts(self, obj):
        from assessments.serializers import StudentAttemptSerializer

        return StudentAttemptSerializer(self._own_attempts(obj), many=True, context=self.context).data
