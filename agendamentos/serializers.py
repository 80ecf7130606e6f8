# agendamentos/serializers.py
from rest_framework import serializers

from .models import Agendamento, AgendamentoServico, ExcecaoAgenda, JornadaTrabalho


class AgendamentoItemSerializer(serializers.ModelSerializer):
    servico_nome = serializers.CharField(source="servico.nome", read_only=True)

    class Meta:
        model = AgendamentoServico
        fields = ["servico", "servico_nome", "preco", "duracao_min"]


class AgendamentoSerializer(serializers.ModelSerializer):
    cliente_nome = serializers.SerializerMethodField()
    colaborador_nome = serializers.CharField(source="colaborador.nome_completo", read_only=True)
    horario = serializers.CharField(source="rotulo_horario", read_only=True)
    itens = AgendamentoItemSerializer(many=True, read_only=True)

    class Meta:
        model = Agendamento
        fields = [
            "id", "empresa", "cliente", "cliente_nome", "colaborador", "colaborador_nome",
            "data", "hora", "horario", "duracao_total_min", "valor_total", "status",
            "observacoes", "itens", "created_at",
        ]
        read_only_fields = fields

    def get_cliente_nome(self, obj):
        return obj.cliente_apelido or obj.cliente.nome


class JornadaSerializer(serializers.ModelSerializer):
    class Meta:
        model = JornadaTrabalho
        fields = ["id", "colaborador", "dia_semana", "inicio", "fim", "ativo"]
        read_only_fields = ["colaborador"]

    def validate(self, attrs):
        inicio = attrs.get("inicio", getattr(self.instance, "inicio", None))
        fim = attrs.get("fim", getattr(self.instance, "fim", None))
        if inicio and fim and fim <= inicio:
            raise serializers.ValidationError({"fim": "O fim deve ser depois do início."})
        return attrs


class ExcecaoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExcecaoAgenda
        fields = ["id", "colaborador", "data", "dia_inteiro", "inicio", "fim", "motivo"]
        read_only_fields = ["colaborador"]

    def validate(self, attrs):
        dia_inteiro = attrs.get("dia_inteiro", getattr(self.instance, "dia_inteiro", False))
        if dia_inteiro:
            attrs["inicio"] = None
            attrs["fim"] = None
            return attrs
        inicio = attrs.get("inicio", getattr(self.instance, "inicio", None))
        fim = attrs.get("fim", getattr(self.instance, "fim", None))
        if not inicio or not fim:
            raise serializers.ValidationError("Informe início e fim ou marque o dia inteiro.")
        if fim <= inicio:
            raise serializers.ValidationError({"fim": "O fim deve ser depois do início."})
        return attrs


class ReservaSerializer(serializers.Serializer):
    """Campos do front para reservar (validação fina fica no serviço)."""
    clientId = serializers.IntegerField()
    collaboratorId = serializers.IntegerField()
    serviceIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    appointmentDate = serializers.DateField()
    appointmentTime = serializers.CharField()
    companyId = serializers.IntegerField()
    totalDurationMinutes = serializers.IntegerField(min_value=1)
    totalPriceCalculated = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    clientNickname = serializers.CharField(required=False, allow_blank=True)
    observations = serializers.CharField(required=False, allow_blank=True)


class ReservaVisitanteSerializer(serializers.Serializer):
    clientNickname = serializers.CharField(max_length=120)
    clientPhone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    collaboratorId = serializers.IntegerField()
    serviceIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    appointmentDate = serializers.DateField()
    appointmentTime = serializers.CharField()
    observations = serializers.CharField(required=False, allow_blank=True)
