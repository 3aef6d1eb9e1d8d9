from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()


class UserRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password]
    )

    password2 = serializers.CharField(write_only=True, required=True)

    class Meta:
        model = User
        fields = (
            'email',
            'username',
            'password',
            'password2',
            'first_name',
            'last_name',
            'timezone'
        )
        extra_kwargs = {
            'email': {'required': True},
            'username': {'required': True},
        }

    def validate(self, attrs):
        if attrs['password'] != attrs['password2']:
            raise serializers.ValidationError({"password": "Password fields didn't match."})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password2')

        # Use the custom manager's creation method
        return User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            username=validated_data['username'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            timezone=validated_data.get('timezone', 'UTC'),
        )


class UserDetailsSerializer(serializers.ModelSerializer):
    """Serializer for returning authenticated user details."""
    class Meta:
        model = User
        fields = (
            'id',
            'email',
            'username',
            'first_name',
            'last_name',
            'timezone',
            'at_capacity',
        )
        read_only_fields = fields


class CapacitySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('at_capacity',)
        extra_kwargs = {'at_capacity': {'required': True}}


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Customizes the TokenObtainPairSerializer to use 'email'
    instead of 'username' for the authentication field.
    """
    username_field = 'email'

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        # Add custom claims to the token payload (accessible in the frontend)
        token['email'] = user.email
        token['full_name'] = user.get_full_name()
        return token
