# empresas/serializers.py
from __future__ import annotations

from django.contrib.auth import password_validation
from rest_framework import serializers

from core.contacts import normalize_phone
from core.validation import cnpj_valido, formatar_cep, formatar_cnpj, somente_digitos

from .models import (
    Colaborador,
    ColaboradorServico,
    Contrato,
    Empresa,
    MembershipRole,
    Segmento,
    TipoComissao,
)


class SegmentoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Segmento
        fields = ["id", "nome"]


class ContratoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contrato
        fields = ["id", "numero", "nome", "conteudo", "created_at"]


class EmpresaSerializer(serializers.ModelSerializer):
    segmento_nome = serializers.CharField(source="segmento.nome", read_only=True, default=None)

    class Meta:
        model = Empresa
        fields = [
            "id", "nome", "razao_social", "cnpj", "slug", "email", "telefone",
            "cep", "endereco", "numero", "bairro", "cidade", "estado",
            "segmento", "segmento_nome", "ativo", "aprovada", "created_at",
        ]
        read_only_fields = ["cnpj", "slug", "ativo", "aprovada", "created_at"]

    def validate_telefone(self, value):
        return normalize_phone(value) if value else ""

    def validate_cep(self, value):
        cep = somente_digitos(value)
        if value and len(cep) != 8:
            raise serializers.ValidationError("CEP inválido.")
        return cep

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["cnpj_formatado"] = formatar_cnpj(instance.cnpj)
        data["cep_formatado"] = formatar_cep(instance.cep)
        return data


class RegistroEmpresaSerializer(serializers.Serializer):
    """Cadastro público de empresa + proprietário (nomes de campo do front)."""
    firstName = serializers.CharField(max_length=80, required=False, allow_blank=True)
    lastName = serializers.CharField(max_length=80, required=False, allow_blank=True)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    phoneNumber = serializers.CharField(required=False, allow_blank=True)
    companyName = serializers.CharField(max_length=120)
    razaoSocial = serializers.CharField(max_length=160, required=False, allow_blank=True)
    cnpj = serializers.CharField(max_length=18)
    companyEmail = serializers.EmailField(required=False, allow_blank=True)
    companyPhoneNumber = serializers.CharField(required=False, allow_blank=True)
    segmentType = serializers.CharField()
    address = serializers.CharField(required=False, allow_blank=True)
    number = serializers.CharField(required=False, allow_blank=True)
    neighborhood = serializers.CharField(required=False, allow_blank=True)
    zipCode = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    state = serializers.CharField(max_length=2, required=False, allow_blank=True)

    def validate_cnpj(self, value):
        if not cnpj_valido(value):
            raise serializers.ValidationError("CNPJ inválido.")
        return somente_digitos(value)

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class TrocarSenhaSerializer(serializers.Serializer):
    senha_atual = serializers.CharField(write_only=True)
    nova_senha = serializers.CharField(write_only=True, min_length=6)

    def validate(self, attrs):
        user = self.context["user"]
        if not user.check_password(attrs["senha_atual"]):
            raise serializers.ValidationError({"senha_atual": "Senha atual incorreta."})
        password_validation.validate_password(attrs["nova_senha"], user)
        return attrs


class ColaboradorSerializer(serializers.ModelSerializer):
    nome_completo = serializers.CharField(read_only=True)

    class Meta:
        model = Colaborador
        fields = [
            "id", "nome", "sobrenome", "nome_completo", "email", "telefone",
            "data_admissao", "percentual_comissao", "ativo", "user", "created_at",
        ]
        read_only_fields = ["email", "user", "created_at"]

    def validate_telefone(self, value):
        return normalize_phone(value) if value else ""


class ConviteColaboradorSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=80)
    lastName = serializers.CharField(max_length=80)
    email = serializers.EmailField()
    phoneNumber = serializers.CharField(max_length=20)
    hireDate = serializers.DateField()
    commissionPercentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=0)
    status = serializers.ChoiceField(choices=["ativo", "inativo"], required=False, default="ativo")
    role = serializers.ChoiceField(
        choices=[MembershipRole.ADMIN, MembershipRole.COLABORADOR],
        required=False,
        default=MembershipRole.COLABORADOR,
    )


class ColaboradorServicoSerializer(serializers.ModelSerializer):
    servico_nome = serializers.CharField(source="servico.nome", read_only=True)
    servico_preco = serializers.DecimalField(source="servico.preco", max_digits=8, decimal_places=2, read_only=True)

    class Meta:
        model = ColaboradorServico
        fields = ["id", "servico", "servico_nome", "servico_preco", "tipo_comissao", "valor_comissao", "ativo"]

    def validate(self, attrs):
        tipo = attrs.get("tipo_comissao", TipoComissao.PERCENT)
        valor = attrs.get("valor_comissao") or 0
        if valor < 0 or (tipo == TipoComissao.PERCENT and valor > 100):
            raise serializers.ValidationError({"valor_comissao": "Valor de comissão inválido."})
        return attrs
